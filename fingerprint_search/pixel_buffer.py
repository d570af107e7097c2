"""
Normalized pixel buffers and sample-encoding conversions.

A pixel buffer is a flat, interleaved sample sequence plus its dimensions.
Two encodings are supported:

    ByteBuffer  uint8 samples, 0-255 inclusive
    UnitBuffer  float32 samples, 0.0-1.0 inclusive

Byte -> unit divides by 255. Unit -> byte multiplies by 255 and truncates
toward zero, so 0.999 becomes 254 and 0.5 becomes 127. Both directions are
computed in float32 so results are reproducible bit for bit.

Large buffers are converted chunk-parallel (see workers.py); small ones
are converted on the calling thread. Both paths give identical output.
"""

import logging
from typing import Optional, Protocol, runtime_checkable

import numpy as np

from .errors import InvalidChannelCount, MalformedBuffer
from .workers import CONVERSION_WORKERS, run_partitions, should_parallelize, split_chunks

logger = logging.getLogger(__name__)

_SCALE = np.float32(255.0)


@runtime_checkable
class ConvertibleToByteBuffer(Protocol):
    """Anything that can present itself as 8-bit samples."""

    def to_byte_buffer(self) -> "ByteBuffer":
        ...


@runtime_checkable
class ConvertibleToUnitBuffer(Protocol):
    """Anything that can present itself as unit-interval float samples."""

    def to_unit_buffer(self) -> "UnitBuffer":
        ...


def bytes_to_unit(samples: np.ndarray) -> np.ndarray:
    """Convert uint8 samples to float32 in [0, 1]."""
    return np.asarray(samples).astype(np.float32) / _SCALE


def unit_to_bytes(samples: np.ndarray) -> np.ndarray:
    """Convert float samples in [0, 1] to uint8, truncating toward zero."""
    return (np.asarray(samples).astype(np.float32) * _SCALE).astype(np.uint8)


def _convert(samples: np.ndarray,
             convert,
             workers: Optional[int],
             min_samples_per_worker: Optional[int]) -> np.ndarray:
    workers = workers or CONVERSION_WORKERS
    if should_parallelize(samples.size, workers, min_samples_per_worker):
        logger.debug(f"Converting {samples.size} samples in {workers} chunks")
        chunks = split_chunks(samples, workers)
        return np.concatenate(run_partitions(convert, chunks, max_workers=workers))
    return convert(samples)


def convert_to_unit(samples: np.ndarray,
                    workers: Optional[int] = None,
                    min_samples_per_worker: Optional[int] = None) -> np.ndarray:
    """
    Byte -> unit conversion, chunk-parallel above the size threshold.

    Args:
        samples: uint8 sample array.
        workers: Number of chunks. Defaults to CONVERSION_WORKERS.
        min_samples_per_worker: Threshold override.

    Returns:
        float32 array of the same length.
    """
    return _convert(np.asarray(samples), bytes_to_unit, workers, min_samples_per_worker)


def convert_to_bytes(samples: np.ndarray,
                     workers: Optional[int] = None,
                     min_samples_per_worker: Optional[int] = None) -> np.ndarray:
    """Unit -> byte conversion, chunk-parallel above the size threshold."""
    return _convert(np.asarray(samples), unit_to_bytes, workers, min_samples_per_worker)


class PixelBuffer:
    """
    Immutable image representation shared by both sample encodings.

    The sample array is copied on construction and marked read-only.

    Raises:
        TypeError: If instantiated directly instead of through ByteBuffer
            or UnitBuffer.
        InvalidChannelCount: If channel_count < 1.
        MalformedBuffer: If the sample count is not
            height * width * channel_count, a sample is non-numeric or out
            of range, or an integral encoding receives fractional samples.
    """

    dtype = None
    max_value = None
    integral = False

    def __init__(self, height: int, width: int, channel_count: int, samples):
        if self.dtype is None:
            raise TypeError(
                "PixelBuffer has no sample encoding; use ByteBuffer or UnitBuffer"
            )
        if channel_count < 1:
            raise InvalidChannelCount(
                f"channel_count must be >= 1, got {channel_count}"
            )
        if height < 0 or width < 0:
            raise MalformedBuffer(f"Negative dimensions {height}x{width}")

        raw = np.asarray(samples)
        expected = height * width * channel_count
        if raw.size != expected:
            raise MalformedBuffer(
                f"Expected {expected} samples for {height}x{width}x{channel_count}, "
                f"got {raw.size}"
            )
        if raw.size and raw.dtype.kind not in "iuf":
            raise MalformedBuffer(
                f"{type(self).__name__} samples must be numeric, got dtype {raw.dtype}"
            )
        if raw.size and ((raw.dtype.kind == "f" and np.isnan(raw).any())
                         or raw.min() < 0 or raw.max() > self.max_value):
            raise MalformedBuffer(
                f"{type(self).__name__} samples must lie in [0, {self.max_value}]"
            )
        if self.integral and raw.dtype.kind == "f" and not np.array_equal(raw, np.floor(raw)):
            raise MalformedBuffer(
                f"{type(self).__name__} samples must be whole numbers"
            )

        data = np.array(raw, dtype=self.dtype).reshape(-1)
        data.setflags(write=False)

        self._height = int(height)
        self._width = int(width)
        self._channel_count = int(channel_count)
        self._samples = data

    @property
    def height(self) -> int:
        return self._height

    @property
    def width(self) -> int:
        return self._width

    @property
    def channel_count(self) -> int:
        return self._channel_count

    @property
    def samples(self) -> np.ndarray:
        return self._samples

    @property
    def pixel_count(self) -> int:
        return self._height * self._width

    def pixels(self) -> np.ndarray:
        """Read-only (pixel_count, channel_count) view of the samples."""
        return self._samples.reshape(-1, self._channel_count)

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return (self._height == other._height
                and self._width == other._width
                and self._channel_count == other._channel_count
                and np.array_equal(self._samples, other._samples))

    __hash__ = None

    def __len__(self):
        return self._samples.size

    def __repr__(self):
        return (
            f"{type(self).__name__}(height={self._height}, width={self._width}, "
            f"channel_count={self._channel_count}, pixels={self.pixel_count})"
        )


class ByteBuffer(PixelBuffer):
    """Pixel buffer with uint8 samples."""

    dtype = np.uint8
    max_value = 255
    integral = True

    def to_byte_buffer(self) -> "ByteBuffer":
        return ByteBuffer(self.height, self.width, self.channel_count, self.samples)

    def to_unit_buffer(self, workers: Optional[int] = None,
                       min_samples_per_worker: Optional[int] = None) -> "UnitBuffer":
        data = convert_to_unit(self.samples, workers, min_samples_per_worker)
        return UnitBuffer(self.height, self.width, self.channel_count, data)


class UnitBuffer(PixelBuffer):
    """Pixel buffer with float32 samples in [0, 1]."""

    dtype = np.float32
    max_value = 1.0

    def to_byte_buffer(self, workers: Optional[int] = None,
                       min_samples_per_worker: Optional[int] = None) -> ByteBuffer:
        data = convert_to_bytes(self.samples, workers, min_samples_per_worker)
        return ByteBuffer(self.height, self.width, self.channel_count, data)

    def to_unit_buffer(self) -> "UnitBuffer":
        return UnitBuffer(self.height, self.width, self.channel_count, self.samples)
