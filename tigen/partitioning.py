"""
Splitting a row count across workers and into bounded INSERT batches.
"""

from __future__ import annotations

from typing import Iterator

from tigen.domain.models import InsertBatch, WorkPartition


def partition(total_rows: int, worker_count: int) -> WorkPartition:
    """
    Give every worker the same share and keep the leftover rows apart.

    The remainder is always smaller than `worker_count` and is inserted by the
    caller, not by a worker.
    """
    if worker_count < 1:
        raise ValueError(f"worker_count must be >= 1, got {worker_count}")
    if total_rows < 0:
        raise ValueError(f"total_rows must be >= 0, got {total_rows}")
    per_worker, remainder = divmod(total_rows, worker_count)
    return WorkPartition(
        per_worker_rows=per_worker, remainder_rows=remainder, worker_count=worker_count
    )


def plan_batches(rows: int, batch_size: int) -> Iterator[InsertBatch]:
    """Yield full batches of `batch_size` rows, then one short batch if needed."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    full, tail = divmod(rows, batch_size)
    for index in range(full):
        yield InsertBatch(index=index, row_count=batch_size)
    if tail:
        yield InsertBatch(index=full, row_count=tail)


__all__ = ["partition", "plan_batches"]
