"""
Bounded fan-out/fan-in worker pool for data-parallel steps.

Work is described as an ordered list of partitions (one color channel, one
chunk of samples, one corpus entry). Each partition is handed to its own
worker, the caller blocks until every worker has finished, and results come
back in partition order regardless of which worker finished first.

Workers never share mutable state: each receives its own slice and returns
its own output, so nothing here takes a lock.
"""

import os
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Sequence

import numpy as np

from .errors import WorkerFailure

logger = logging.getLogger(__name__)

# Parallel execution only pays off on large buffers. A strategy is engaged
# when total samples >= worker_count * MIN_SAMPLES_PER_WORKER.
MIN_SAMPLES_PER_WORKER = int(os.environ.get("FP_MIN_SAMPLES_PER_WORKER", "100000"))

# Number of contiguous chunks used for bulk u8 <-> float conversion.
CONVERSION_WORKERS = int(os.environ.get("FP_CONVERSION_WORKERS", "4"))

# Upper bound on threads for any single fan-out.
MAX_WORKERS = int(os.environ.get("FP_MAX_WORKERS", str(os.cpu_count() or 4)))


def should_parallelize(sample_count: int,
                       worker_count: int,
                       min_samples_per_worker: Optional[int] = None) -> bool:
    """
    Decide whether a buffer is large enough for the parallel strategy.

    Args:
        sample_count: Total number of samples to process.
        worker_count: Number of partitions the work would be split into.
        min_samples_per_worker: Override for MIN_SAMPLES_PER_WORKER.

    Returns:
        True if the parallel path should run.
    """
    if worker_count < 2:
        return False
    if min_samples_per_worker is None:
        min_samples_per_worker = MIN_SAMPLES_PER_WORKER
    return sample_count >= worker_count * min_samples_per_worker


def split_chunks(samples: np.ndarray, chunk_count: int) -> List[np.ndarray]:
    """
    Split a flat sample array into contiguous, non-overlapping chunks.

    Chunk sizes differ by at most one sample. Concatenating the chunks in
    order reproduces the input.
    """
    if chunk_count < 1:
        raise ValueError(f"chunk_count must be >= 1, got {chunk_count}")
    return np.array_split(np.asarray(samples), chunk_count)


def run_partitions(func: Callable[[Any], Any],
                   partitions: Sequence[Any],
                   max_workers: Optional[int] = None) -> List[Any]:
    """
    Apply func to every partition on a bounded thread pool.

    Blocks until all workers complete. There is no timeout and no
    cancellation; a worker that raises is reported once every submitted
    worker has finished.

    Args:
        func: Pure function of one partition.
        partitions: Ordered work items.
        max_workers: Thread cap. Defaults to MAX_WORKERS; never more
                     threads than partitions.

    Returns:
        List of func results, in partition order.

    Raises:
        WorkerFailure: If any worker raised. The original exception is
            chained as __cause__.
    """
    partitions = list(partitions)
    if not partitions:
        return []

    pool_size = max(1, min(len(partitions), max_workers or MAX_WORKERS))
    logger.debug(f"Dispatching {len(partitions)} partitions to {pool_size} workers")

    results = []
    with ThreadPoolExecutor(max_workers=pool_size) as executor:
        futures = [executor.submit(func, partition) for partition in partitions]
        for index, future in enumerate(futures):
            try:
                results.append(future.result())
            except Exception as e:
                raise WorkerFailure(
                    f"Worker for partition {index} failed: {e}", partition=index
                ) from e

    return results
