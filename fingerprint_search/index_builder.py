"""
Batch fingerprinting of image files into the corpus store.

Accepts a single image file or a directory (non-recursive). Files whose
path is already in the store are skipped, files that fail to decode are
logged and counted, and all new fingerprints are written in one store
update at the end.
"""

import os
import logging
from typing import Optional

from .errors import FingerprintError
from .fingerprint import build_fingerprint, normalize_filepath
from .histograms import BIN_COUNT
from .preprocessing import is_image_file, load_pixel_buffer
from .store import CorpusStore

logger = logging.getLogger(__name__)


def build_index(path: str,
                store: CorpusStore,
                bin_count: int = BIN_COUNT,
                parallel: bool = True,
                max_workers: Optional[int] = None) -> dict:
    """
    Fingerprint an image file or a directory of images into the store.

    Args:
        path: Image file or directory containing images.
        store: Corpus store to append to.
        bin_count: Histogram bins per channel.
        parallel: Use parallel histogram building for large images.
        max_workers: Thread cap for parallel steps.

    Returns:
        Dict with 'success', 'processed', 'skipped', 'errors' counts and
        the store's total record count as 'corpus_size'.

    Raises:
        CorpusReadFailure, CorpusWriteFailure: On store errors.
    """
    if os.path.isdir(path):
        filepaths = [
            normalize_filepath(os.path.join(path, f))
            for f in sorted(os.listdir(path))
            if is_image_file(os.path.join(path, f))
        ]
    elif is_image_file(path):
        filepaths = [normalize_filepath(path)]
    else:
        logger.warning(f"Invalid path: {path}")
        return {"success": False, "error": f"Not an image file or directory: {path}"}

    known_paths = {fp.filepath for fp in store.read_all()}
    fingerprints = []
    skipped = 0
    errors = 0

    logger.info(f"Indexing {len(filepaths)} images from {path}")

    for i, filepath in enumerate(filepaths):
        if filepath in known_paths:
            skipped += 1
            continue

        try:
            picture = load_pixel_buffer(filepath)
            fingerprint = build_fingerprint(filepath, picture, bin_count,
                                            parallel=parallel, max_workers=max_workers)
        except FingerprintError as e:
            logger.warning(f"Failed to process {filepath}: {e}")
            errors += 1
            continue

        fingerprints.append(fingerprint)
        known_paths.add(filepath)

        if (i + 1) % 500 == 0:
            logger.info(f"Processed {i + 1}/{len(filepaths)} images")

    processed = store.extend(fingerprints)
    corpus_size = len(store)

    logger.info(
        f"Index updated: {processed} added, {skipped} already indexed, "
        f"{errors} errors, {corpus_size} records total"
    )

    return {
        "success": True,
        "processed": processed,
        "skipped": skipped,
        "errors": errors,
        "corpus_size": corpus_size,
    }
