"""
In-memory stand-ins for the connection provider and SQL sessions.
"""

from __future__ import annotations

import re
import threading
from typing import Callable, Dict, List, Optional, Tuple

from tigen.domain.errors import DatabaseConnectionError

_INSERT_RE = re.compile(r"^insert into `(?P<table>[^`]+)` \((?P<columns>[^)]*)\) values (?P<values>.*)$")
_CREATE_RE = re.compile(r"^create table `(?P<table>[^`]+)` \((?P<columns>.*)\)$")


def parse_insert(statement: str) -> Tuple[str, List[str], List[List[str]]]:
    """Split a rendered INSERT into table name, column list and value tuples."""
    match = _INSERT_RE.match(statement)
    assert match, f"not an insert statement: {statement[:80]}"
    columns = [name for name in match["columns"].split(",") if name]
    body = match["values"]
    assert body.startswith("(") and body.endswith(")")
    tuples = [
        [literal for literal in chunk.split(",") if literal]
        for chunk in body[1:-1].split("),(")
    ]
    return match["table"], columns, tuples


class FakeSession:
    def __init__(self, db: FakeDatabase, index: int) -> None:
        self.db = db
        self.index = index
        self.statements: List[str] = []
        self.closed = False

    def execute(self, statement: str) -> None:
        if self.db.before_execute is not None:
            self.db.before_execute(self, statement)
        self.db.apply(self, statement)

    def close(self) -> None:
        self.closed = True
        if self.db.on_close is not None:
            self.db.on_close(self)


class FakeDatabase:
    """
    Connection provider backed by a dict of table row counts.

    Session 0 is always the orchestrator's; worker sessions follow in the order
    they were opened. `before_execute` may raise StatementError or block to
    simulate server behaviour; `open_error` fails `open()` for matching sessions.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.sessions: List[FakeSession] = []
        self.tables: Dict[str, List[str]] = {}
        self.rows: Dict[str, int] = {}
        self.before_execute: Optional[Callable[[FakeSession, str], None]] = None
        self.on_close: Optional[Callable[[FakeSession], None]] = None
        self.open_error: Optional[Callable[[int], bool]] = None

    def open(self) -> FakeSession:
        with self._lock:
            index = len(self.sessions)
            if self.open_error is not None and self.open_error(index):
                raise DatabaseConnectionError(f"session {index} refused")
            session = FakeSession(self, index)
            self.sessions.append(session)
            return session

    def apply(self, session: FakeSession, statement: str) -> None:
        with self._lock:
            session.statements.append(statement)
            if statement.startswith("drop table if exists"):
                table = statement.split("`")[1]
                self.tables.pop(table, None)
                self.rows.pop(table, None)
            elif statement.startswith("create table"):
                match = _CREATE_RE.match(statement)
                assert match, statement
                self.tables[match["table"]] = match["columns"].split(",")
                self.rows[match["table"]] = 0
            elif statement.startswith("insert into"):
                table, _, tuples = parse_insert(statement)
                assert table in self.tables, f"insert into missing table {table}"
                self.rows[table] += len(tuples)

    @property
    def inserts(self) -> List[str]:
        return [
            statement
            for session in self.sessions
            for statement in session.statements
            if statement.startswith("insert into")
        ]


