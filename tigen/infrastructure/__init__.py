"""
Infrastructure package for tigen.

Centralizes database connectivity (connection provider and statement executor).
Keep this layer focused on I/O and resource management, decoupled from the
generators and the inserter.
"""

from tigen.infrastructure.db_factory import (
    ConnectionParams,
    ConnectionProvider,
    MySQLConnectionProvider,
    MySQLSession,
    SqlSession,
)

__all__ = [
    "ConnectionParams",
    "ConnectionProvider",
    "MySQLConnectionProvider",
    "MySQLSession",
    "SqlSession",
]
