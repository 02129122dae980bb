"""
Scoped database connections for metadata builds.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlresource.config import ConnectionConfig
from sqlresource.errors import SchemaAccessError
from sqlresource.metadata.dialect import SqlDialect

logger = logging.getLogger(__name__)


class ConnectionFactory:
    """Opens connections to a named database through the configured dialect."""

    def __init__(self, config: ConnectionConfig, dialect: SqlDialect):
        self.config = config
        self.dialect = dialect

    def get_connection(self, database: str) -> Any:
        """
        Open a new connection. The caller owns it and must close it.

        Raises:
            SchemaAccessError: if the connection cannot be established
        """
        try:
            connection = self.dialect.connect(self.config, database)
        except Exception as e:
            raise SchemaAccessError(
                f"Could not connect to {self.dialect.name} database {database}: {e}",
                details={"database": database, "host": self.config.host},
            ) from e

        logger.info(f"Connected to {self.dialect.name} database {database} as {self.config.user}")
        return connection

    @contextmanager
    def connect(self, database: str) -> Iterator[Any]:
        """Yield a connection that is closed however the block exits."""
        connection = self.get_connection(database)
        try:
            yield connection
        finally:
            try:
                connection.close()
            except Exception as e:
                logger.warning(f"Error closing connection to {database}: {e}")
