"""
Composite similarity scoring and ranking.

Combines two signals into one score per corpus entry:

    composite = 0.5 * brightness_similarity + 0.5 * histogram_similarity

The 50/50 weighting is fixed; COMPOSITE_WEIGHTS documents it and is not
read from configuration.

Ranking is a stable sort on descending composite score, so entries with
equal scores keep their corpus order.
"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import Iterable, List, Optional

from .fingerprint import Fingerprint
from .similarity import brightness_similarity, histogram_similarity
from .workers import run_partitions

logger = logging.getLogger(__name__)

COMPOSITE_WEIGHTS = {
    "brightness": 0.5,
    "histogram": 0.5,
}

# Reference result count for "most similar images" queries.
DEFAULT_TOP_K = 5


@dataclass(frozen=True)
class SimilarityResult:
    """Similarity of one corpus entry to the query."""

    corpus_entry: Fingerprint
    composite_score: float
    cosine_similarity: float
    brightness_similarity: float

    def to_dict(self) -> dict:
        """Flat summary with similarities as percentages."""
        return {
            "filepath": self.corpus_entry.filepath,
            "filename": self.corpus_entry.filename,
            "score": round(self.composite_score * 100, 2),
            "cosine_similarity": round(self.cosine_similarity * 100, 2),
            "brightness_similarity": round(self.brightness_similarity * 100, 2),
        }


def composite_score(brightness_sim: float, cosine_sim: float) -> float:
    """Fixed-weight combination of the two similarity signals."""
    return (COMPOSITE_WEIGHTS["brightness"] * brightness_sim
            + COMPOSITE_WEIGHTS["histogram"] * cosine_sim)


def compare(query: Fingerprint, entry: Fingerprint) -> SimilarityResult:
    """
    Score one corpus entry against the query.

    Raises:
        ChannelCountMismatch: If the fingerprints have different layouts.
        HistogramLengthMismatch: If their bin counts differ.
        EmptyHistogram: If either has an empty channel.
    """
    cosine = histogram_similarity(query.histograms, entry.histograms)
    brightness = brightness_similarity(query.average_brightness,
                                       entry.average_brightness)
    return SimilarityResult(
        corpus_entry=entry,
        composite_score=composite_score(brightness, cosine),
        cosine_similarity=cosine,
        brightness_similarity=brightness,
    )


def rank_results(results: Iterable[SimilarityResult]) -> List[SimilarityResult]:
    """
    Sort results by composite score, highest first.

    The sort is stable: equal scores stay in input order.
    """
    return sorted(results, key=lambda r: -r.composite_score)


def rank_corpus(query: Fingerprint,
                corpus: Iterable[Fingerprint],
                top_k: Optional[int] = None,
                max_workers: Optional[int] = None) -> List[SimilarityResult]:
    """
    Compare the query with every corpus entry and rank the results.

    The query itself is scored like any other entry if it is in the
    corpus. Any comparison error aborts the whole ranking.

    Args:
        query: Fingerprint of the query image.
        corpus: All indexed fingerprints, in store order.
        top_k: Keep only the first top_k results. None keeps all.
        max_workers: If > 1, compare entries on a thread pool. Result
                     order is unaffected; errors surface as WorkerFailure.

    Returns:
        Ranked list of SimilarityResult.
    """
    if top_k is not None and top_k < 0:
        raise ValueError(f"top_k must be >= 0, got {top_k}")

    corpus = list(corpus)
    if max_workers and max_workers > 1 and len(corpus) > 1:
        results = run_partitions(partial(compare, query), corpus, max_workers=max_workers)
    else:
        results = [compare(query, entry) for entry in corpus]

    ranked = rank_results(results)
    if top_k is not None:
        ranked = ranked[:top_k]
    return ranked
