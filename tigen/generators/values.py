"""
Random literal generation for INSERT statements.

A ValueGenerator owns its own `random.Random`, so give each worker its own
generator instead of sharing one between threads.
"""

from __future__ import annotations

import random
import string
from typing import Optional

from tigen.domain.models import ColumnType

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
STRING_LENGTH = 20
# Literals are emitted unescaped; widening the alphabet requires escaping.
ALPHABET = string.ascii_letters


class ValueGenerator:
    """
    Produce SQL literals for a column type.

    INTEGER values are uniform over the signed 32-bit range. FIXED_STRING values
    are always STRING_LENGTH letters, well under the declared varchar(100).
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng or random.Random()

    def next(self, column_type: ColumnType) -> str:
        if column_type is ColumnType.INTEGER:
            return str(self._rng.randint(INT32_MIN, INT32_MAX))
        if column_type is ColumnType.FIXED_STRING:
            return "'" + "".join(self._rng.choices(ALPHABET, k=STRING_LENGTH)) + "'"
        raise ValueError(f"Unsupported column type: {column_type!r}")


__all__ = ["ValueGenerator", "ALPHABET", "STRING_LENGTH", "INT32_MIN", "INT32_MAX"]
