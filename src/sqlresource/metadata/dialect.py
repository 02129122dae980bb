"""
Dialect hook surface.

Each supported backend subclasses SqlDialect and supplies the pieces that
differ between database engines: reading column identity out of a probe
result, qualifying table names, and the catalog queries for columns and
primary keys.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, NamedTuple, Optional

from sqlresource.definition import SqlResourceDefinition
from sqlresource.models import TableRole

if TYPE_CHECKING:
    from sqlresource.config import ConnectionConfig
    from sqlresource.metadata.access import SchemaAccess


@dataclass
class ResultColumn:
    """Driver-reported metadata for one column position of a probe result."""
    position: int  # 1-based
    label: str
    column_name: str
    table_name: Optional[str] = None
    database_name: Optional[str] = None
    schema_name: Optional[str] = None
    type_name: Optional[str] = None
    type_code: Optional[int] = None
    read_only: bool = False  # computed or expression column


class ColumnIdentity(NamedTuple):
    """Where a probe column comes from."""
    database_name: str
    table_name: str
    column_name: str
    qualified_table_name: str


class SqlDialect(ABC):
    """Vendor-specific SQL and result metadata handling."""

    name: str = ""
    default_port: Optional[int] = None

    def probe_query(self, definition: SqlResourceDefinition) -> str:
        """Return the main query limited to a single row."""
        return definition.query.rstrip().rstrip(";") + " LIMIT 1 OFFSET 0"

    @abstractmethod
    def connect(self, config: ConnectionConfig, database: str) -> Any:
        """Open a DB-API connection to ``database``."""

    @abstractmethod
    def describe_result(self, cursor: Any, access: SchemaAccess) -> List[ResultColumn]:
        """Extract per-column metadata from an executed probe cursor."""

    def column_identity(
        self,
        access: SchemaAccess,
        definition: SqlResourceDefinition,
        column: ResultColumn,
    ) -> ColumnIdentity:
        """
        Resolve database, table and column names for a probe column.

        Read-only columns rarely report their source table, so they are
        attributed to the declared Parent table. A Parent declared as
        ``database.table`` supplies its own database, otherwise the default
        database is used.
        """
        if column.read_only:
            database_name, _, table_name = definition.get_table(TableRole.PARENT).name.rpartition(".")
            database_name = database_name or definition.default_database
            return ColumnIdentity(
                database_name=database_name,
                table_name=table_name,
                column_name=self.column_name(definition, column),
                qualified_table_name=self.qualified_table_name(access, database_name, table_name),
            )

        return ColumnIdentity(
            database_name=self.column_database_name(definition, column),
            table_name=self.column_table_name(definition, column),
            column_name=self.column_name(definition, column),
            qualified_table_name=self.column_qualified_table_name(definition, column),
        )

    def column_database_name(self, definition: SqlResourceDefinition, column: ResultColumn) -> str:
        return column.database_name or definition.default_database

    def column_table_name(self, definition: SqlResourceDefinition, column: ResultColumn) -> str:
        return column.table_name

    def column_name(self, definition: SqlResourceDefinition, column: ResultColumn) -> str:
        return column.column_name

    @abstractmethod
    def column_qualified_table_name(
        self,
        definition: SqlResourceDefinition,
        column: ResultColumn,
    ) -> str:
        """Qualified name of the table a non read-only probe column belongs to."""

    @abstractmethod
    def qualified_table_name(self, access: SchemaAccess, database_name: str, table_name: str) -> str:
        """Qualified name for a table known only by database and table name."""

    @abstractmethod
    def columns_query(self) -> str:
        """
        SQL listing a table's columns.

        Takes (database, table) parameters and returns (column_name, type_name)
        rows in column order.
        """

    @abstractmethod
    def primary_key_query(self) -> str:
        """
        SQL listing a table's primary key columns.

        Takes (database, table) parameters and returns (column_name,) rows in
        key order.
        """
