"""
tigen - random table and test data generator for TiDB/MySQL.

Creates a table with a randomized schema (integer and varchar columns, with an
optional auto-increment primary key) and fills it with random rows using
parallel workers that each submit batched INSERT statements over their own
connection.
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from tigen.config import Settings, get_settings
from tigen.domain import (
    ColumnSpec,
    ColumnType,
    ColumnTypeRegistry,
    DatabaseConnectionError,
    InsertError,
    SchemaCreationError,
    TableSpec,
    TigenError,
)
from tigen.generators import BatchInsertBuilder, SchemaGenerator, ValueGenerator
from tigen.inserter import ConcurrentInserter, InsertResult, RunConfig, RunState
from tigen.partitioning import partition, plan_batches
from tigen.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Domain
    "ColumnSpec",
    "ColumnType",
    "ColumnTypeRegistry",
    "TableSpec",
    # Errors
    "TigenError",
    "DatabaseConnectionError",
    "SchemaCreationError",
    "InsertError",
    # Generation
    "BatchInsertBuilder",
    "SchemaGenerator",
    "ValueGenerator",
    "partition",
    "plan_batches",
    # Orchestration
    "ConcurrentInserter",
    "InsertResult",
    "RunConfig",
    "RunState",
    # Logging
    "configure_logging",
    "get_logger",
]
