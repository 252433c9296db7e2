from __future__ import annotations

from typing import Optional

from tigen.domain.models import ColumnTypeRegistry
from tigen.generators.schema import quote_identifier
from tigen.generators.values import ValueGenerator


class BatchInsertBuilder:
    """
    Render a multi-row INSERT for the non-key columns of a registry.

    The column list and every value tuple walk the registry in the same order,
    so a value always lands in the column it was generated for.
    """

    def __init__(self, values: Optional[ValueGenerator] = None) -> None:
        self._values = values or ValueGenerator()

    def build(self, table_name: str, row_count: int, registry: ColumnTypeRegistry) -> str:
        if row_count < 1:
            raise ValueError(f"row_count must be >= 1, got {row_count}")

        names = list(registry)
        types = [registry[name] for name in names]
        tuples = [
            "(" + ",".join(self._values.next(column_type) for column_type in types) + ")"
            for _ in range(row_count)
        ]
        return "insert into {} ({}) values {}".format(
            quote_identifier(table_name), ",".join(names), ",".join(tuples)
        )


__all__ = ["BatchInsertBuilder"]
