"""
Randomized table schema generation.

Usage:
    from tigen.generators.schema import SchemaGenerator

    create_sql, registry = SchemaGenerator().generate("t", column_count=10, include_primary_key=True)
"""

from __future__ import annotations

import random
from typing import Optional, Sequence, Tuple

from tigen.domain.models import PRIMARY_KEY_NAME, ColumnSpec, ColumnType, ColumnTypeRegistry

_VALUE_TYPES = (ColumnType.INTEGER, ColumnType.FIXED_STRING)


def quote_identifier(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


def render_create(table_name: str, columns: Sequence[ColumnSpec]) -> str:
    return "create table {} ({})".format(
        quote_identifier(table_name), ",".join(column.ddl() for column in columns)
    )


def render_drop(table_name: str) -> str:
    return f"drop table if exists {quote_identifier(table_name)}"


class SchemaGenerator:
    """
    Decide column count and types for a generated table.

    Pure computation: the caller executes the rendered statements.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def columns(self, column_count: int, include_primary_key: bool) -> Tuple[ColumnSpec, ...]:
        """
        Build the ordered column list.

        Names are positional (`col_<index>`), so with a key the first value
        column is `col_1` and never collides with the key's slot.
        """
        columns = []
        if include_primary_key:
            columns.append(
                ColumnSpec(name=PRIMARY_KEY_NAME, type=ColumnType.INTEGER, primary_key=True)
            )
        for index in range(len(columns), column_count):
            columns.append(ColumnSpec(name=f"col_{index}", type=self._rng.choice(_VALUE_TYPES)))
        return tuple(columns)

    def generate(
        self, table_name: str, column_count: int, include_primary_key: bool
    ) -> Tuple[str, ColumnTypeRegistry]:
        """Return the create statement and the registry of non-key column types."""
        columns = self.columns(column_count, include_primary_key)
        return render_create(table_name, columns), ColumnTypeRegistry(columns)


__all__ = ["SchemaGenerator", "quote_identifier", "render_create", "render_drop"]
