from __future__ import annotations

import logging
import threading
import time

import pytest

from tests.fakes import FakeDatabase, FakeSession, parse_insert
from tigen.domain.errors import (
    DatabaseConnectionError,
    InsertError,
    SchemaCreationError,
    StatementError,
)
from tigen.domain.models import ColumnSpec, ColumnType, ColumnTypeRegistry
from tigen.generators.insert import BatchInsertBuilder
from tigen.inserter import ConcurrentInserter, RunConfig, RunState, _insert_rows

ORCHESTRATOR_SESSION = 0
WAIT_SECONDS = 5


def _config(**overrides) -> RunConfig:
    fields = {
        "table_name": "t",
        "column_count": 3,
        "row_count": 10,
        "worker_count": 2,
        "batch_size": 5,
        "include_primary_key": True,
    }
    fields.update(overrides)
    return RunConfig(**fields)


def test_ten_rows_two_workers_batch_five(fake_db: FakeDatabase) -> None:
    inserter = ConcurrentInserter(_config(), fake_db)
    result = inserter.run()

    assert inserter.state is RunState.DONE
    assert fake_db.rows["t"] == 10
    assert result["rows"] == 10
    assert result["per_worker_rows"] == 5
    assert result["remainder_rows"] == 0
    assert fake_db.tables["t"][0] == "pk int auto_increment primary key"
    for statement in fake_db.inserts:
        _, columns, tuples = parse_insert(statement)
        assert len(columns) == 2
        assert "pk" not in columns
        assert 1 <= len(tuples) <= 5
        assert all(len(values) == 2 for values in tuples)


def test_seven_rows_three_workers_remainder_on_orchestrator(fake_db: FakeDatabase) -> None:
    result = ConcurrentInserter(
        _config(row_count=7, worker_count=3, batch_size=1000), fake_db
    ).run()

    assert (result["per_worker_rows"], result["remainder_rows"]) == (2, 1)
    assert fake_db.rows["t"] == 7
    assert len(fake_db.sessions) == 4

    orchestrator = fake_db.sessions[ORCHESTRATOR_SESSION]
    assert orchestrator.statements[0] == "drop table if exists `t`"
    assert orchestrator.statements[1].startswith("create table `t`")
    remainder_inserts = [s for s in orchestrator.statements if s.startswith("insert")]
    assert len(remainder_inserts) == 1
    assert len(parse_insert(remainder_inserts[0])[2]) == 1

    for session in fake_db.sessions[1:]:
        assert len(session.statements) == 1
        assert len(parse_insert(session.statements[0])[2]) == 2


def test_every_session_is_closed(fake_db: FakeDatabase) -> None:
    ConcurrentInserter(_config(row_count=23, worker_count=4, batch_size=3), fake_db).run()
    assert fake_db.rows["t"] == 23
    assert all(session.closed for session in fake_db.sessions)


def test_launches_exactly_worker_count_workers(fake_db: FakeDatabase) -> None:
    result = ConcurrentInserter(_config(row_count=100, worker_count=6, batch_size=7), fake_db).run()

    assert len(fake_db.sessions) == 1 + 6
    worker_stats = [stats for stats in result["workers"] if stats["worker"] is not None]
    assert sorted(stats["worker"] for stats in worker_stats) == list(range(6))
    assert all(stats["rows"] == 16 for stats in worker_stats)
    assert all(stats["batches"] == 3 for stats in worker_stats)
    assert result["rows"] == 100


def test_zero_rows_creates_empty_table(fake_db: FakeDatabase) -> None:
    result = ConcurrentInserter(_config(row_count=0), fake_db).run()
    assert fake_db.rows["t"] == 0
    assert fake_db.inserts == []
    assert result["batches"] == 0


def test_key_only_table_still_inserts_rows(fake_db: FakeDatabase) -> None:
    ConcurrentInserter(_config(column_count=1, row_count=4), fake_db).run()
    assert fake_db.tables["t"] == ["pk int auto_increment primary key"]
    assert fake_db.rows["t"] == 4


def test_second_worker_failure_keeps_rows_already_committed(fake_db: FakeDatabase) -> None:
    first_worker_closed = threading.Event()

    def close_hook(session: FakeSession) -> None:
        if session.index == 1:
            first_worker_closed.set()

    def fail_second_worker(session: FakeSession, statement: str) -> None:
        if session.index == 2 and statement.startswith("insert"):
            assert first_worker_closed.wait(WAIT_SECONDS)
            raise StatementError("simulated server error", statement)

    fake_db.on_close = close_hook
    fake_db.before_execute = fail_second_worker
    inserter = ConcurrentInserter(_config(), fake_db)

    with pytest.raises(InsertError) as excinfo:
        inserter.run()

    assert excinfo.value.worker in (0, 1)
    assert excinfo.value.batch == 0
    assert isinstance(excinfo.value.__cause__, StatementError)
    assert inserter.state is RunState.FAILED
    # No rollback: the first worker's share stays in the table.
    assert fake_db.rows["t"] == 5
    assert all(session.closed for session in fake_db.sessions)


def test_remainder_failure_reports_orchestrator(fake_db: FakeDatabase) -> None:
    def fail_remainder(session: FakeSession, statement: str) -> None:
        if session.index == ORCHESTRATOR_SESSION and statement.startswith("insert"):
            raise StatementError("simulated server error", statement)

    fake_db.before_execute = fail_remainder

    with pytest.raises(InsertError) as excinfo:
        ConcurrentInserter(_config(row_count=11), fake_db).run()

    assert excinfo.value.worker is None
    assert fake_db.rows["t"] == 10


def test_create_failure_is_schema_error_and_launches_no_workers(fake_db: FakeDatabase) -> None:
    def fail_create(session: FakeSession, statement: str) -> None:
        if statement.startswith("create table"):
            raise StatementError("simulated server error", statement)

    fake_db.before_execute = fail_create
    inserter = ConcurrentInserter(_config(), fake_db)

    with pytest.raises(SchemaCreationError):
        inserter.run()

    assert inserter.state is RunState.FAILED
    assert len(fake_db.sessions) == 1
    assert fake_db.sessions[0].closed


def test_orchestrator_connection_failure(fake_db: FakeDatabase) -> None:
    fake_db.open_error = lambda index: True

    with pytest.raises(DatabaseConnectionError):
        ConcurrentInserter(_config(), fake_db).run()

    assert fake_db.sessions == []


def test_worker_connection_failure_is_fatal(fake_db: FakeDatabase) -> None:
    fake_db.open_error = lambda index: index == 2

    with pytest.raises(DatabaseConnectionError):
        ConcurrentInserter(_config(), fake_db).run()

    assert all(session.closed for session in fake_db.sessions)


def test_same_seed_creates_same_table(fake_db: FakeDatabase) -> None:
    other = FakeDatabase()
    ConcurrentInserter(_config(column_count=15, seed=11), fake_db).run()
    ConcurrentInserter(_config(column_count=15, seed=11), other).run()
    assert fake_db.tables["t"] == other.tables["t"]


def test_injected_logger_receives_run_and_worker_events(
    fake_db: FakeDatabase, caplog: pytest.LogCaptureFixture
) -> None:
    logger = logging.getLogger("tests.inserter")
    with caplog.at_level(logging.INFO, logger="tests.inserter"):
        ConcurrentInserter(_config(), fake_db, logger=logger).run()

    messages = [record.getMessage() for record in caplog.records if record.name == "tests.inserter"]
    assert any(message.startswith("[CREATED_TABLE]") for message in messages)
    assert sum(message.startswith("[WORKER DONE]") for message in messages) == 2
    assert messages[-1].startswith("[DONE]")


def test_insert_rows_stops_when_aborted(fake_db: FakeDatabase) -> None:
    registry = ColumnTypeRegistry([ColumnSpec(name="col_0", type=ColumnType.INTEGER)])
    fake_db.tables["t"] = ["col_0 int"]
    fake_db.rows["t"] = 0
    abort = threading.Event()
    abort.set()

    stats = _insert_rows(
        fake_db.open(),
        "t",
        registry,
        10,
        5,
        BatchInsertBuilder(),
        worker=0,
        logger=logging.getLogger("tests.inserter"),
        abort=abort,
    )

    assert stats["aborted"] is True
    assert stats["rows"] == 0
    assert fake_db.rows["t"] == 0


def test_earliest_worker_failure_is_reported(fake_db: FakeDatabase) -> None:
    first_worker_closed = threading.Event()

    def close_hook(session: FakeSession) -> None:
        if session.index == 1:
            first_worker_closed.set()

    def fail_both_workers(session: FakeSession, statement: str) -> None:
        if not statement.startswith("insert") or session.index == ORCHESTRATOR_SESSION:
            return
        if session.index == 1:
            raise StatementError("earliest failure", statement)
        assert first_worker_closed.wait(WAIT_SECONDS)
        time.sleep(0.1)
        raise StatementError("later failure", statement)

    fake_db.on_close = close_hook
    fake_db.before_execute = fail_both_workers

    with pytest.raises(InsertError) as excinfo:
        ConcurrentInserter(_config(), fake_db).run()

    assert "earliest failure" in str(excinfo.value)
    assert fake_db.rows["t"] == 0


def test_interrupt_stops_workers_before_next_batch(fake_db: FakeDatabase, monkeypatch) -> None:
    first_insert = threading.Event()
    released = threading.Event()

    def hold_inserts(session: FakeSession, statement: str) -> None:
        if statement.startswith("insert") and session.index != ORCHESTRATOR_SESSION:
            first_insert.set()
            assert released.wait(WAIT_SECONDS)

    def interrupted_wait(futures):
        assert first_insert.wait(WAIT_SECONDS)
        threading.Timer(0.1, released.set).start()
        raise KeyboardInterrupt

    fake_db.before_execute = hold_inserts
    monkeypatch.setattr("tigen.inserter.as_completed", interrupted_wait)
    inserter = ConcurrentInserter(_config(row_count=400, worker_count=2, batch_size=1), fake_db)

    with pytest.raises(KeyboardInterrupt):
        inserter.run()

    assert inserter.state is RunState.FAILED
    # Each worker finishes at most the batch it was executing.
    assert fake_db.rows["t"] <= 2
    assert all(session.closed for session in fake_db.sessions)


@pytest.mark.parametrize(
    "overrides",
    [
        {"worker_count": 0},
        {"batch_size": 0},
        {"row_count": -1},
        {"table_name": ""},
        {"column_count": 0},
    ],
)
def test_run_config_rejects_invalid_values(overrides) -> None:
    with pytest.raises(ValueError):
        _config(**overrides)
