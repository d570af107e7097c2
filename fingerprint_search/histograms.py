"""
Per-channel intensity histograms over 8-bit samples.

Each color channel gets BIN_COUNT bins over 0-255. With bin width
w = 255 // BIN_COUNT the bins are:

    bin 0      [0, w]
    bin i > 0  [i*w + 1, (i+1)*w]

so bin 0 is one value wider than the rest. For BIN_COUNT = 5 the bounds
are 0-51, 52-102, 103-153, 154-204, 205-255. Only divisors of 255 give
bins that cover the whole range: 1, 3, 5, 15, 17, 51, 85, 255.

Two strategies produce identical histograms:
    build_histograms           single-threaded, strided walk
    build_histograms_parallel  one worker per channel over gathered samples
"""

import logging
from dataclasses import dataclass
from functools import lru_cache, partial
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .pixel_buffer import ConvertibleToByteBuffer
from .workers import run_partitions, should_parallelize

logger = logging.getLogger(__name__)

BIN_COUNT = 5


@lru_cache(maxsize=None)
def bin_bounds(bin_count: int = BIN_COUNT) -> Tuple[Tuple[int, int], ...]:
    """
    Closed (lower, upper) bounds for every bin.

    Raises:
        ValueError: If bin_count is not a divisor of 255.
    """
    if bin_count < 1 or 255 % bin_count != 0:
        raise ValueError(f"bin_count must divide 255, got {bin_count}")

    width = 255 // bin_count
    bounds = []
    lower, upper = 0, width
    for _ in range(bin_count):
        bounds.append((lower, upper))
        # bin 0 starts at 0, every later bin one above the previous upper bound
        if lower == 0:
            lower += 1
        lower += width
        upper += width
    return tuple(bounds)


def bin_index(value: int, bin_count: int = BIN_COUNT) -> int:
    """
    Index of the bin a single sample falls into.

    Walks the bins in order and returns the first closed range that
    contains the value.
    """
    if not 0 <= value <= 255:
        raise ValueError(f"Sample value must be in [0, 255], got {value}")
    for index, (lower, upper) in enumerate(bin_bounds(bin_count)):
        if lower <= value <= upper:
            return index
    raise ValueError(f"No bin covers {value} with bin_count={bin_count}")


def _bin_indices(values: np.ndarray, bin_count: int) -> np.ndarray:
    """Vectorized bin_index; bin_index is the reference it is tested against."""
    width = bin_bounds(bin_count)[0][1]
    values = values.astype(np.int64)
    return np.where(values <= width, 0, (values - 1) // width)


@dataclass(frozen=True)
class Histogram:
    """Immutable bin counts for one color channel."""

    bins: Tuple[int, ...]

    @classmethod
    def empty(cls, bin_count: int = BIN_COUNT) -> "Histogram":
        bin_bounds(bin_count)
        return cls(bins=(0,) * bin_count)

    @classmethod
    def from_counts(cls, counts: Sequence[int]) -> "Histogram":
        """
        Raises:
            ValueError: If a count is negative or not a whole number.
            TypeError: If a count is not numeric.
        """
        counts = tuple(counts)
        if any(isinstance(c, (bool, str)) or not float(c).is_integer()
               for c in counts):
            raise ValueError(f"Bin counts must be whole numbers, got {counts}")
        counts = tuple(int(c) for c in counts)
        if any(c < 0 for c in counts):
            raise ValueError(f"Bin counts must be non-negative, got {counts}")
        return cls(bins=counts)

    @property
    def bin_count(self) -> int:
        return len(self.bins)

    @property
    def total(self) -> int:
        return sum(self.bins)

    def to_record(self) -> dict:
        return {"bins": list(self.bins)}

    @classmethod
    def from_record(cls, record: dict) -> "Histogram":
        return cls.from_counts(record["bins"])


def histogram_of_samples(samples, bin_count: int = BIN_COUNT) -> Histogram:
    """
    Build one channel's histogram from its samples.

    Args:
        samples: Sequence or array of integer values in [0, 255].
        bin_count: Number of bins; must divide 255.

    Returns:
        Histogram whose counts sum to len(samples).
    """
    values = np.asarray(samples)
    if values.size and (values.min() < 0 or values.max() > 255):
        raise ValueError("Sample values must be in [0, 255]")
    if values.size == 0:
        return Histogram.empty(bin_count)
    counts = np.bincount(_bin_indices(values.reshape(-1), bin_count), minlength=bin_count)
    return Histogram.from_counts(counts)


def build_histograms(picture: ConvertibleToByteBuffer,
                     bin_count: int = BIN_COUNT) -> List[Histogram]:
    """
    Sequential strategy: one histogram per channel.

    Walks the samples in channel_count-sized strides; the sample at stride
    offset i goes to channel i. An empty buffer yields all-zero histograms.
    """
    pic = picture.to_byte_buffer()
    pixels = pic.pixels()
    return [histogram_of_samples(pixels[:, channel], bin_count)
            for channel in range(pic.channel_count)]


def take_every_nth_value(samples, n: int, start_at_index: int) -> np.ndarray:
    """
    Strided gather: samples[start], samples[start + n], ...

    Returns a contiguous copy so the result can be handed to a worker.
    """
    if n < 1:
        raise ValueError(f"Stride must be >= 1, got {n}")
    return np.ascontiguousarray(np.asarray(samples)[start_at_index::n])


def build_histograms_parallel(picture: ConvertibleToByteBuffer,
                              bin_count: int = BIN_COUNT,
                              max_workers: Optional[int] = None,
                              min_samples_per_worker: Optional[int] = None,
                              force: bool = False) -> List[Histogram]:
    """
    Parallel strategy: one worker per channel.

    The samples are split by channel with take_every_nth_value, each
    worker builds its channel's histogram privately, and the results are
    assembled by channel index. Small buffers fall back to
    build_histograms.

    Args:
        picture: Any buffer convertible to 8-bit samples.
        bin_count: Number of bins per channel.
        max_workers: Thread cap for the fan-out.
        min_samples_per_worker: Threshold override.
        force: Skip the size threshold.

    Returns:
        List of histograms in channel order.

    Raises:
        WorkerFailure: If a channel worker raised.
    """
    pic = picture.to_byte_buffer()
    channel_count = pic.channel_count

    if not force and not should_parallelize(pic.samples.size, channel_count,
                                            min_samples_per_worker):
        logger.debug(f"{pic.samples.size} samples below parallel threshold, "
                     f"building histograms sequentially")
        return build_histograms(pic, bin_count)

    channels = [take_every_nth_value(pic.samples, channel_count, start)
                for start in range(channel_count)]
    return run_partitions(partial(histogram_of_samples, bin_count=bin_count),
                          channels, max_workers=max_workers)
