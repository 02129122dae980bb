"""
Schema access over an open DB-API connection.

All statements issued while building metadata go through SchemaAccess so
driver failures surface uniformly as SchemaAccessError with the statement
attached.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from sqlresource.errors import SchemaAccessError, SqlResourceError
from sqlresource.metadata.dialect import ResultColumn, SqlDialect

logger = logging.getLogger(__name__)


class SchemaAccess:
    """Executes probe and catalog queries for one metadata build."""

    def __init__(self, connection: Any, dialect: SqlDialect):
        self._conn = connection
        self.dialect = dialect

    def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Tuple]:
        """Execute ``sql`` and return all rows."""
        logger.debug(f"Catalog query with params {params}")
        cursor = None
        try:
            cursor = self._conn.cursor()
            if params is None:
                cursor.execute(sql)
            else:
                cursor.execute(sql, params)
            return list(cursor.fetchall())
        except SqlResourceError:
            raise
        except Exception as e:
            raise SchemaAccessError(f"Schema query failed: {e}", sql=sql) from e
        finally:
            if cursor is not None:
                cursor.close()

    def probe(self, sql: str) -> List[ResultColumn]:
        """Execute a row-limited query and describe its result columns."""
        cursor = None
        try:
            cursor = self._conn.cursor()
            cursor.execute(sql)
            cursor.fetchone()
            return self.dialect.describe_result(cursor, self)
        except SqlResourceError:
            raise
        except Exception as e:
            raise SchemaAccessError(f"Probe query failed: {e}", sql=sql) from e
        finally:
            if cursor is not None:
                cursor.close()

    def table_columns(self, database_name: str, table_name: str) -> List[Tuple[str, str]]:
        """Return (column_name, type_name) for every column of a table."""
        rows = self.query(self.dialect.columns_query(), (database_name, table_name))
        return [(row[0], row[1]) for row in rows]

    def primary_key_columns(self, database_name: str, table_name: str) -> List[str]:
        """Return primary key column names of a table in key order."""
        rows = self.query(self.dialect.primary_key_query(), (database_name, table_name))
        return [row[0] for row in rows]
