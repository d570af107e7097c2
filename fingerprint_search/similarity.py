"""
Histogram and brightness similarity.

Histograms are L1-normalized, compared per channel with cosine
similarity, and the per-channel values are averaged. Brightness
similarity is 1 - |a - b|. Neither function substitutes a default value
for an undefined comparison: empty histograms and mismatched layouts
raise.
"""

import logging
from typing import Sequence, Union

import numpy as np

from .errors import ChannelCountMismatch, EmptyHistogram, HistogramLengthMismatch
from .histograms import Histogram

logger = logging.getLogger(__name__)

HistogramLike = Union[Histogram, Sequence[float], np.ndarray]


def _as_vector(histogram: HistogramLike) -> np.ndarray:
    if isinstance(histogram, Histogram):
        histogram = histogram.bins
    return np.asarray(histogram, dtype=np.float64)


def normalize(histogram: HistogramLike) -> np.ndarray:
    """
    L1-normalize bin counts so they sum to 1.

    Raises:
        EmptyHistogram: If the counts sum to zero.
    """
    counts = _as_vector(histogram)
    total = counts.sum()
    if total == 0:
        raise EmptyHistogram("Cannot normalize a histogram with zero total count")
    return counts / total


def cosine_similarity(a: HistogramLike, b: HistogramLike) -> float:
    """
    dot(a, b) / (|a| * |b|) with Euclidean magnitudes.

    Identical inputs yield exactly 1.0.

    Raises:
        HistogramLengthMismatch: If the vectors differ in length.
        EmptyHistogram: If either vector has zero magnitude.
    """
    a = _as_vector(a)
    b = _as_vector(b)
    if a.shape != b.shape:
        raise HistogramLengthMismatch(
            f"Histogram lengths differ: {a.size} vs {b.size}"
        )

    # sqrt(x * x) == x exactly in IEEE arithmetic, so a == b gives 1.0
    magnitude = np.sqrt(np.dot(a, a) * np.dot(b, b))
    if magnitude == 0:
        raise EmptyHistogram("Cannot compare a zero-magnitude histogram")

    return float(min(np.dot(a, b) / magnitude, 1.0))


def histogram_similarity(histograms_a: Sequence[Histogram],
                         histograms_b: Sequence[Histogram]) -> float:
    """
    Mean per-channel cosine similarity of normalized histograms.

    Args:
        histograms_a: One histogram per channel.
        histograms_b: One histogram per channel.

    Returns:
        Similarity in [0, 1].

    Raises:
        ChannelCountMismatch: If the channel counts differ.
        EmptyHistogram: If there are no channels or a channel is empty.
    """
    if len(histograms_a) != len(histograms_b):
        raise ChannelCountMismatch(
            f"Cannot compare {len(histograms_a)}-channel and "
            f"{len(histograms_b)}-channel fingerprints"
        )
    if not histograms_a:
        raise EmptyHistogram("Fingerprints have no histogram channels")

    similarities = [cosine_similarity(normalize(a), normalize(b))
                    for a, b in zip(histograms_a, histograms_b)]
    return sum(similarities) / len(similarities)


def brightness_similarity(brightness_a: float, brightness_b: float) -> float:
    """1 - |a - b|; symmetric, 1.0 for equal brightness."""
    return 1.0 - abs(brightness_a - brightness_b)
