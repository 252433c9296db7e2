"""
Error types raised by tigen.

Each stage error is fatal to a run. The CLI maps them to distinct exit codes.
"""

from __future__ import annotations

from typing import Optional


class TigenError(Exception):
    """Base class for run failures; `stage` names the failing step."""

    stage: str = "run"
    exit_code: int = 1


class StatementError(TigenError):
    """A single SQL statement was rejected by the server or the transport failed."""

    stage = "statement"

    def __init__(self, message: str, statement: str = "") -> None:
        super().__init__(message)
        self.statement = statement


class DatabaseConnectionError(TigenError):
    stage = "connect"
    exit_code = 2


class SchemaCreationError(TigenError):
    stage = "schema"
    exit_code = 3


class InsertError(TigenError):
    """
    A batch INSERT failed.

    `worker` is None when the failing batch belonged to the remainder inserted
    by the orchestrator itself.
    """

    stage = "insert"
    exit_code = 4

    def __init__(self, message: str, worker: Optional[int] = None, batch: int = 0) -> None:
        super().__init__(message)
        self.worker = worker
        self.batch = batch


__all__ = [
    "TigenError",
    "StatementError",
    "DatabaseConnectionError",
    "SchemaCreationError",
    "InsertError",
]
