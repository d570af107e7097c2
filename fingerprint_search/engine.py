"""
Image similarity search engine.

Orchestrates the fingerprint search pipeline:
    1. Decode the query image into a ByteBuffer
    2. Fingerprint it (per-channel histograms + average brightness)
    3. Read the whole corpus from the store
    4. Score every entry (brightness + histogram cosine) and rank

The corpus is read in full on every query; there is no in-memory cache,
so results always reflect the current store file.
"""

import logging
from typing import List, Optional

from .brightness import image_brightness
from .fingerprint import Fingerprint, build_fingerprint
from .histograms import BIN_COUNT
from .index_builder import build_index
from .pixel_buffer import ConvertibleToByteBuffer
from .preprocessing import load_pixel_buffer
from .scoring import DEFAULT_TOP_K, SimilarityResult, compare, rank_corpus
from .store import CorpusStore

logger = logging.getLogger(__name__)


class SearchEngine:
    """
    Brightness/histogram image search over a JSON corpus store.
    """

    def __init__(self,
                 datastore_path: str,
                 bin_count: int = BIN_COUNT,
                 parallel: bool = True,
                 max_workers: Optional[int] = None):
        """
        Args:
            datastore_path: JSON file holding the corpus.
            bin_count: Histogram bins per channel; must divide 255 and
                       match the bin count the corpus was built with.
            parallel: Use parallel histogram building for large images.
            max_workers: Thread cap for parallel steps. Values > 1 also
                         parallelize corpus comparison.
        """
        self.store = CorpusStore(datastore_path)
        self.bin_count = bin_count
        self.parallel = parallel
        self.max_workers = max_workers

    def fingerprint_buffer(self, picture: ConvertibleToByteBuffer,
                           filepath: str) -> Fingerprint:
        """Fingerprint an already-decoded image."""
        return build_fingerprint(filepath, picture, self.bin_count,
                                 parallel=self.parallel, max_workers=self.max_workers)

    def fingerprint(self, filepath: str) -> Fingerprint:
        """Decode and fingerprint an image file without storing it."""
        return self.fingerprint_buffer(load_pixel_buffer(filepath), filepath)

    def average_brightness(self, filepath: str) -> float:
        """Average brightness of an image file, in [0, 1]."""
        return image_brightness(load_pixel_buffer(filepath))

    def index(self, path: str) -> dict:
        """Add an image file or directory of images to the corpus."""
        return build_index(path, self.store, self.bin_count,
                           parallel=self.parallel, max_workers=self.max_workers)

    def corpus(self) -> List[Fingerprint]:
        return self.store.read_all()

    def search_fingerprint(self, query: Fingerprint,
                           top_k: Optional[int] = DEFAULT_TOP_K) -> List[SimilarityResult]:
        """
        Rank the corpus against a query fingerprint.

        Args:
            query: Query fingerprint.
            top_k: Maximum number of results; None returns the whole
                   ranked corpus.

        Returns:
            Results sorted by composite score, ties in corpus order.
        """
        corpus = self.store.read_all()
        results = rank_corpus(query, corpus, top_k=top_k, max_workers=self.max_workers)

        logger.info(
            f"Search complete: {len(corpus)} candidates → {len(results)} results"
        )
        return results

    def search_buffer(self, picture: ConvertibleToByteBuffer,
                      top_k: Optional[int] = DEFAULT_TOP_K,
                      filepath: str = "<query>") -> List[SimilarityResult]:
        """Rank the corpus against an already-decoded query image."""
        return self.search_fingerprint(self.fingerprint_buffer(picture, filepath), top_k)

    def search(self, query_path: str,
               top_k: Optional[int] = DEFAULT_TOP_K) -> List[SimilarityResult]:
        """Rank the corpus against an image file."""
        return self.search_fingerprint(self.fingerprint(query_path), top_k)

    def compare_images(self, path_a: str, path_b: str) -> SimilarityResult:
        """Score image b against image a without touching the store."""
        return compare(self.fingerprint(path_a), self.fingerprint(path_b))
