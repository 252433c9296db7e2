"""
Generators package for tigen.

Pure, I/O-free builders for the schema, the cell values and the batched INSERT
statements executed by the inserter.
"""

from tigen.generators.insert import BatchInsertBuilder
from tigen.generators.schema import SchemaGenerator, render_create, render_drop
from tigen.generators.values import ValueGenerator

__all__ = [
    "BatchInsertBuilder",
    "SchemaGenerator",
    "ValueGenerator",
    "render_create",
    "render_drop",
]
