"""
Concurrent table generation: create a random table, then fill it from parallel workers.

Usage:
    from tigen.inserter import ConcurrentInserter, RunConfig
    from tigen.infrastructure import MySQLConnectionProvider

    config = RunConfig(table_name="t", column_count=10, row_count=20_000, worker_count=10, batch_size=1000)
    result = ConcurrentInserter(config, MySQLConnectionProvider.from_settings()).run()

A run moves through RunState in order. Any stage error (connection, schema,
insert) is fatal: the remaining workers stop before their next batch, the
first error is raised, and rows already committed stay in the table.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, TypedDict

from tigen.domain.errors import InsertError, SchemaCreationError, StatementError
from tigen.domain.models import ColumnTypeRegistry, TableSpec, WorkPartition
from tigen.generators.insert import BatchInsertBuilder
from tigen.generators.schema import SchemaGenerator, render_create, render_drop
from tigen.generators.values import ValueGenerator
from tigen.infrastructure.db_factory import ConnectionProvider, SqlSession
from tigen.partitioning import partition, plan_batches
from tigen.utils.logging import get_logger
from tigen.utils.profiler import profile_block

log = get_logger(__name__)


class RunState(str, Enum):
    PENDING = "pending"
    CREATED_TABLE = "created_table"
    WORKERS_RUNNING = "workers_running"
    WORKERS_JOINED = "workers_joined"
    REMAINDER_INSERTED = "remainder_inserted"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class RunConfig:
    table_name: str
    column_count: int
    row_count: int
    worker_count: int
    batch_size: int
    include_primary_key: bool = True
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.table_name:
            raise ValueError("table_name must not be empty")
        if self.column_count < 1:
            raise ValueError(f"column_count must be >= 1, got {self.column_count}")
        if self.worker_count < 1:
            raise ValueError(f"worker_count must be >= 1, got {self.worker_count}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.row_count < 0:
            raise ValueError(f"row_count must be >= 0, got {self.row_count}")


class WorkerStats(TypedDict):
    worker: Optional[int]
    rows: int
    batches: int
    duration_seconds: float
    aborted: bool


class InsertResult(TypedDict, total=False):
    table: str
    columns: List[str]
    rows: int
    batches: int
    worker_count: int
    batch_size: int
    per_worker_rows: int
    remainder_rows: int
    duration_seconds: float
    throughput_rows_per_sec: float
    peak_rss_bytes: Optional[int]
    cpu_percent: Optional[float]
    workers: List[WorkerStats]


def _insert_rows(
    session: SqlSession,
    table_name: str,
    registry: ColumnTypeRegistry,
    rows: int,
    batch_size: int,
    builder: BatchInsertBuilder,
    worker: Optional[int],
    logger: logging.Logger,
    abort: Optional[threading.Event] = None,
) -> WorkerStats:
    """
    Insert `rows` rows in batches of at most `batch_size` on one session.

    Checks `abort` before each batch so a failure elsewhere stops this share early.
    """
    start = time.perf_counter()
    stats = WorkerStats(worker=worker, rows=0, batches=0, duration_seconds=0.0, aborted=False)
    for batch in plan_batches(rows, batch_size):
        if abort is not None and abort.is_set():
            stats["aborted"] = True
            logger.warning(
                "[WORKER ABORTED] stopping after a failure elsewhere",
                extra={"worker": worker, "rows": stats["rows"]},
            )
            break
        statement = builder.build(table_name, batch.row_count, registry)
        try:
            session.execute(statement)
        except StatementError as exc:
            raise InsertError(
                f"Batch {batch.index} of worker {worker if worker is not None else 'remainder'} "
                f"failed: {exc}",
                worker=worker,
                batch=batch.index,
            ) from exc
        stats["rows"] += batch.row_count
        stats["batches"] += 1
        logger.debug(
            "Batch inserted",
            extra={"worker": worker, "batch": batch.index, "rows": batch.row_count},
        )
    stats["duration_seconds"] = time.perf_counter() - start
    return stats


def _run_worker(
    provider: ConnectionProvider,
    table_name: str,
    registry: ColumnTypeRegistry,
    rows: int,
    batch_size: int,
    worker: int,
    values: ValueGenerator,
    abort: threading.Event,
    logger: logging.Logger,
) -> WorkerStats:
    """Worker entry point: own session, own value generator, one share of rows."""
    session = provider.open()
    try:
        stats = _insert_rows(
            session,
            table_name,
            registry,
            rows,
            batch_size,
            BatchInsertBuilder(values),
            worker,
            logger,
            abort,
        )
    finally:
        session.close()
    logger.info(
        f"[WORKER DONE] worker {worker}",
        extra={"worker": worker, "rows": stats["rows"], "batches": stats["batches"]},
    )
    return stats


class ConcurrentInserter:
    """
    Orchestrate one generation run.

    The orchestrator keeps its own session for table creation and for the
    remainder rows; each worker opens and closes its own session.
    """

    def __init__(
        self,
        config: RunConfig,
        provider: ConnectionProvider,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.provider = provider
        self.log = logger or log
        self.state = RunState.PENDING
        self._rng = random.Random(config.seed)

    def _transition(self, state: RunState, **fields: object) -> None:
        self.state = state
        self.log.info(
            f"[{state.name}] {self.config.table_name}",
            extra={"table": self.config.table_name, "state": state.value, **fields},
        )

    def _worker_values(self, worker: int) -> ValueGenerator:
        if self.config.seed is None:
            return ValueGenerator()
        return ValueGenerator(random.Random(self.config.seed + worker + 1))

    def _create_table(self, session: SqlSession) -> Tuple[TableSpec, ColumnTypeRegistry]:
        config = self.config
        columns = SchemaGenerator(self._rng).columns(config.column_count, config.include_primary_key)
        spec = TableSpec(
            table_name=config.table_name,
            columns=columns,
            row_count=config.row_count,
            batch_size=config.batch_size,
            worker_count=config.worker_count,
        )
        create_statement = render_create(spec.table_name, spec.columns)
        try:
            session.execute(render_drop(spec.table_name))
            session.execute(create_statement)
        except StatementError as exc:
            raise SchemaCreationError(
                f"Cannot create table '{spec.table_name}': {exc}"
            ) from exc
        self.log.debug("Create statement", extra={"statement": create_statement})
        return spec, spec.registry()

    def _run_workers(
        self, spec: TableSpec, registry: ColumnTypeRegistry, work: WorkPartition
    ) -> List[WorkerStats]:
        abort = threading.Event()
        with ThreadPoolExecutor(
            max_workers=work.worker_count, thread_name_prefix="tigen-worker"
        ) as pool:
            futures = [
                pool.submit(
                    _run_worker,
                    self.provider,
                    spec.table_name,
                    registry,
                    work.per_worker_rows,
                    spec.batch_size,
                    worker,
                    self._worker_values(worker),
                    abort,
                    self.log,
                )
                for worker in range(work.worker_count)
            ]
            first_error: Optional[BaseException] = None
            try:
                for future in as_completed(futures):
                    if future.exception() is not None:
                        first_error = future.exception()
                        abort.set()
                        break
            except BaseException:
                # Interrupted while waiting: workers stop before their next batch.
                abort.set()
                raise
        # Leaving the executor joins every worker.
        if first_error is not None:
            failures = sum(1 for future in futures if future.exception() is not None)
            self.log.error(
                f"[WORKERS FAILED] {failures} of {work.worker_count} worker(s) failed",
                extra={"table": spec.table_name, "failures": failures},
            )
            raise first_error
        return [future.result() for future in futures]

    def run(self) -> InsertResult:
        config = self.config
        self.log.info(
            f"[RUN START] {config.table_name}",
            extra={
                "table": config.table_name,
                "columns": config.column_count,
                "rows": config.row_count,
                "workers": config.worker_count,
                "batch_size": config.batch_size,
            },
        )
        try:
            with profile_block(config.table_name) as stats:
                session = self.provider.open()
                try:
                    spec, registry = self._create_table(session)
                    self._transition(RunState.CREATED_TABLE, columns=len(spec.columns))

                    work = partition(spec.row_count, spec.worker_count)
                    self._transition(
                        RunState.WORKERS_RUNNING,
                        per_worker_rows=work.per_worker_rows,
                        remainder_rows=work.remainder_rows,
                    )
                    worker_stats = self._run_workers(spec, registry, work)
                    self._transition(RunState.WORKERS_JOINED)

                    remainder = _insert_rows(
                        session,
                        spec.table_name,
                        registry,
                        work.remainder_rows,
                        spec.batch_size,
                        BatchInsertBuilder(ValueGenerator(self._rng)),
                        None,
                        self.log,
                    )
                    self._transition(RunState.REMAINDER_INSERTED, rows=remainder["rows"])
                finally:
                    session.close()
        except BaseException:
            self.state = RunState.FAILED
            raise

        all_stats = worker_stats + [remainder]
        rows = sum(item["rows"] for item in all_stats)
        duration = stats.duration_seconds
        result = InsertResult(
            table=spec.table_name,
            columns=[column.name for column in spec.columns],
            rows=rows,
            batches=sum(item["batches"] for item in all_stats),
            worker_count=work.worker_count,
            batch_size=spec.batch_size,
            per_worker_rows=work.per_worker_rows,
            remainder_rows=work.remainder_rows,
            duration_seconds=round(duration, 3),
            throughput_rows_per_sec=round(rows / duration, 2) if duration > 0 else 0.0,
            peak_rss_bytes=stats.peak_rss_bytes,
            cpu_percent=round(stats.cpu_percent, 1) if stats.cpu_percent is not None else None,
            workers=all_stats,
        )
        self._transition(RunState.DONE, rows=rows, duration=result["duration_seconds"])
        return result


__all__ = [
    "ConcurrentInserter",
    "InsertResult",
    "RunConfig",
    "RunState",
    "WorkerStats",
]
