"""
Domain package for tigen.

Exports the column/table models and the error hierarchy shared by the
generators, the inserter and the CLI. Keep this package free of I/O.
"""

from tigen.domain.errors import (
    DatabaseConnectionError,
    InsertError,
    SchemaCreationError,
    StatementError,
    TigenError,
)
from tigen.domain.models import (
    PRIMARY_KEY_NAME,
    ColumnSpec,
    ColumnType,
    ColumnTypeRegistry,
    InsertBatch,
    TableSpec,
    WorkPartition,
)

__all__ = [
    # Models
    "PRIMARY_KEY_NAME",
    "ColumnSpec",
    "ColumnType",
    "ColumnTypeRegistry",
    "InsertBatch",
    "TableSpec",
    "WorkPartition",
    # Errors
    "DatabaseConnectionError",
    "InsertError",
    "SchemaCreationError",
    "StatementError",
    "TigenError",
]
