"""
The per-image search index record.

A Fingerprint holds the average brightness and per-channel histograms of
one image, keyed by its filepath. Its external (JSON) shape is:

    {
        "filepath": "images/beach.png",
        "filename": "beach",
        "average_brightness": 0.61,
        "histogram": [{"bins": [...]}, ...]
    }
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .brightness import image_brightness
from .histograms import BIN_COUNT, Histogram, build_histograms, build_histograms_parallel
from .pixel_buffer import ConvertibleToByteBuffer

logger = logging.getLogger(__name__)


def normalize_filepath(filepath: str) -> str:
    """Use forward slashes regardless of platform."""
    return filepath.replace("\\", "/")


def derive_name(filepath: str) -> str:
    """Last path segment with its final extension stripped."""
    filename = normalize_filepath(filepath).rsplit("/", 1)[-1]
    if "." in filename:
        return filename.rsplit(".", 1)[0]
    return filename


@dataclass(frozen=True)
class Fingerprint:
    """Immutable brightness + histogram summary of one image."""

    filepath: str
    filename: str
    average_brightness: float
    histograms: Tuple[Histogram, ...]

    @classmethod
    def create(cls,
               filepath: str,
               average_brightness: float,
               histograms: Sequence[Histogram]) -> "Fingerprint":
        """Build a record, deriving filename from filepath."""
        filepath = normalize_filepath(filepath)
        return cls(
            filepath=filepath,
            filename=derive_name(filepath),
            average_brightness=float(average_brightness),
            histograms=tuple(histograms),
        )

    @property
    def channel_count(self) -> int:
        return len(self.histograms)

    def to_record(self) -> dict:
        return {
            "filepath": self.filepath,
            "filename": self.filename,
            "average_brightness": self.average_brightness,
            "histogram": [h.to_record() for h in self.histograms],
        }

    @classmethod
    def from_record(cls, record: dict) -> "Fingerprint":
        """
        Parse the external record shape.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed.
        """
        if not isinstance(record, dict):
            raise TypeError(f"Expected an object, got {type(record).__name__}")
        histograms = record["histogram"]
        if not isinstance(histograms, list):
            raise TypeError("'histogram' must be a list")
        for key in ("filepath", "filename"):
            if not isinstance(record[key], str):
                raise TypeError(f"'{key}' must be a string, got "
                                f"{type(record[key]).__name__}")
        return cls(
            filepath=record["filepath"],
            filename=record["filename"],
            average_brightness=float(record["average_brightness"]),
            histograms=tuple(Histogram.from_record(h) for h in histograms),
        )


def build_fingerprint(filepath: str,
                      picture: ConvertibleToByteBuffer,
                      bin_count: int = BIN_COUNT,
                      parallel: bool = True,
                      max_workers: Optional[int] = None) -> Fingerprint:
    """
    Compute the fingerprint of a decoded image.

    Args:
        filepath: Key the record is stored under.
        picture: Decoded pixel buffer.
        bin_count: Histogram bins per channel.
        parallel: Use the per-channel parallel histogram strategy when
                  the buffer is large enough.
        max_workers: Thread cap for parallel steps.

    Returns:
        Fingerprint for the image.

    Raises:
        EmptyImage: If the buffer has no pixels.
    """
    pic = picture.to_byte_buffer()

    if parallel:
        histograms = build_histograms_parallel(pic, bin_count, max_workers=max_workers)
    else:
        histograms = build_histograms(pic, bin_count)

    brightness = image_brightness(pic)
    logger.debug(f"Fingerprinted {filepath}: brightness={brightness:.4f}, "
                 f"{len(histograms)} channels")

    return Fingerprint.create(filepath, brightness, histograms)
