"""
Symbol frequency counting

The parallel path is a fork-join: the buffer is cut into contiguous slices,
each worker counts its own slice into a private Counter, and the partial
tables are merged by the calling thread once every worker has finished.
"""

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 1


def partition(length: int, workers: int) -> List[Tuple[int, int]]:
    """
    Split range(length) into `workers` contiguous (start, end) slices.
    Every slice has length // workers items, the last one also takes the remainder.
    """
    if workers < 1:
        raise ValueError(f"worker count must be at least 1, got {workers}")
    slice_len = length // workers
    bounds = []
    for i in range(workers):
        start = i * slice_len
        end = length if i == workers - 1 else start + slice_len
        bounds.append((start, end))
    return bounds


def _ordered(counts: Counter) -> Dict[int, int]:
    return dict(sorted(counts.items()))


def count_frequencies_sequential(data: bytes) -> Dict[int, int]:
    return _ordered(Counter(data))


def _count_slice(data: bytes, start: int, end: int) -> Counter:
    return Counter(memoryview(data)[start:end])


def count_frequencies(data: bytes, workers: int = DEFAULT_WORKERS) -> Dict[int, int]:
    """
    Frequency table of data, counted by `workers` threads.

    The result is identical to count_frequencies_sequential(data) for any
    worker count. An exception raised in a worker propagates to the caller.
    """
    bounds = partition(len(data), workers)
    if workers == 1:
        return count_frequencies_sequential(data)

    logger.debug("counting %d bytes with %d workers", len(data), workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_count_slice, data, start, end) for start, end in bounds]
        # join barrier: result() re-raises whatever a worker raised
        partials = [f.result() for f in futures]

    total = Counter()
    for local in partials:
        total.update(local)
    return _ordered(total)
