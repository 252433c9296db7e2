"""
Domain models for tigen.

Defines the column type variant, column/table descriptions, and the small value
objects used to split work between insert workers. Everything here is immutable
once built so it can be shared across worker threads without locking.
"""
from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

PRIMARY_KEY_NAME = "pk"


class ColumnType(str, Enum):
    """The two column types a generated table may contain."""

    INTEGER = "int"
    FIXED_STRING = "varchar(100)"

    @property
    def ddl(self) -> str:
        return self.value


class ColumnSpec(BaseModel):
    """
    A single column of the generated table.
    """

    name: str = Field(..., min_length=1, description="Column identifier.")
    type: ColumnType = Field(..., description="Column type.")
    primary_key: bool = Field(False, description="Server-assigned auto-increment key.")

    model_config = {
        "frozen": True,
    }

    def ddl(self) -> str:
        if self.primary_key:
            return f"{self.name} {self.type.ddl} auto_increment primary key"
        return f"{self.name} {self.type.ddl}"


class ColumnTypeRegistry(Mapping[str, ColumnType]):
    """
    Read-only mapping of non-key column name to its type.

    Iteration follows column creation order, which is the order used for both
    the INSERT column list and every value tuple.
    """

    __slots__ = ("_types",)

    def __init__(self, columns: Iterable[ColumnSpec]) -> None:
        types = {}
        for column in columns:
            if column.primary_key:
                continue
            if column.name in types:
                raise ValueError(f"Duplicate column name '{column.name}'")
            types[column.name] = column.type
        self._types = MappingProxyType(types)

    def __getitem__(self, name: str) -> ColumnType:
        return self._types[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"ColumnTypeRegistry({dict(self._types)!r})"


class TableSpec(BaseModel):
    """
    Everything a run needs to know about the target table and its workload.
    """

    table_name: str = Field(..., min_length=1)
    columns: Tuple[ColumnSpec, ...] = Field(..., min_length=1)
    row_count: int = Field(..., ge=0, description="Total rows to insert.")
    batch_size: int = Field(..., ge=1, description="Maximum rows per INSERT statement.")
    worker_count: int = Field(..., ge=1, description="Number of parallel insert workers.")

    model_config = {
        "frozen": True,
    }

    @model_validator(mode="after")
    def _check_columns(self) -> "TableSpec":
        names = [column.name for column in self.columns]
        if len(names) != len(set(names)):
            raise ValueError("Column names must be unique")
        for position, column in enumerate(self.columns):
            if not column.primary_key:
                continue
            if position != 0:
                raise ValueError("Primary key column must be the first column")
            if column.type is not ColumnType.INTEGER:
                raise ValueError("Primary key column must be an integer")
        return self

    @property
    def key_column(self) -> Optional[ColumnSpec]:
        if self.columns and self.columns[0].primary_key:
            return self.columns[0]
        return None

    @property
    def value_columns(self) -> Tuple[ColumnSpec, ...]:
        return tuple(column for column in self.columns if not column.primary_key)

    def registry(self) -> ColumnTypeRegistry:
        return ColumnTypeRegistry(self.columns)


@dataclass(frozen=True)
class WorkPartition:
    per_worker_rows: int
    remainder_rows: int
    worker_count: int

    @property
    def total_rows(self) -> int:
        return self.per_worker_rows * self.worker_count + self.remainder_rows


@dataclass(frozen=True)
class InsertBatch:
    index: int
    row_count: int


__all__ = [
    "PRIMARY_KEY_NAME",
    "ColumnType",
    "ColumnSpec",
    "ColumnTypeRegistry",
    "TableSpec",
    "WorkPartition",
    "InsertBatch",
]
