"""
PostgreSQL dialect using psycopg2.

psycopg2 reports the source relation of each result column as a table OID
and attribute number; these are resolved through pg_catalog. PostgreSQL does
not report the database of a column, so the definition's default database is
used throughout and tables are qualified by schema.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from sqlresource.definition import SqlResourceDefinition
from sqlresource.metadata.dialect import ResultColumn, SqlDialect

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"


class PostgreSqlDialect(SqlDialect):
    """PostgreSQL."""

    name = "postgresql"
    default_port = 5432

    RELATION_QUERY = """
        SELECT n.nspname, c.relname, a.attname
        FROM pg_catalog.pg_class c
        JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
        JOIN pg_catalog.pg_attribute a ON a.attrelid = c.oid
        WHERE c.oid = %s AND a.attnum = %s
    """

    TYPE_QUERY = "SELECT typname FROM pg_catalog.pg_type WHERE oid = %s"

    SCHEMA_QUERY = """
        SELECT table_schema
        FROM information_schema.tables
        WHERE table_catalog = %s AND table_name = %s
    """

    COLUMNS_QUERY = """
        SELECT column_name, data_type
        FROM information_schema.columns
        WHERE table_catalog = %s AND table_name = %s
        ORDER BY ordinal_position
    """

    PRIMARY_KEY_QUERY = """
        SELECT kcu.column_name
        FROM information_schema.table_constraints tc
        JOIN information_schema.key_column_usage kcu
            ON tc.constraint_catalog = kcu.constraint_catalog
            AND tc.constraint_schema = kcu.constraint_schema
            AND tc.constraint_name = kcu.constraint_name
        WHERE tc.constraint_type = 'PRIMARY KEY'
            AND tc.table_catalog = %s
            AND tc.table_name = %s
        ORDER BY kcu.ordinal_position
    """

    def connect(self, config, database: str) -> Any:
        import psycopg2

        return psycopg2.connect(
            host=config.host,
            port=config.port or self.default_port,
            user=config.user,
            password=config.password,
            dbname=database,
            **config.options,
        )

    def describe_result(self, cursor, access) -> List[ResultColumn]:
        type_names: Dict[int, Optional[str]] = {}
        columns = []

        for position, desc in enumerate(cursor.description or [], start=1):
            type_code = desc.type_code
            if type_code not in type_names:
                rows = access.query(self.TYPE_QUERY, (type_code,))
                type_names[type_code] = rows[0][0] if rows else None

            column = ResultColumn(
                position=position,
                label=desc.name,
                column_name=desc.name,
                type_name=type_names[type_code],
                type_code=type_code,
                read_only=True,
            )

            table_oid = getattr(desc, "table_oid", None)
            if table_oid is not None:
                rows = access.query(self.RELATION_QUERY, (table_oid, desc.table_column))
                if rows:
                    column.schema_name, column.table_name, column.column_name = rows[0]
                    column.read_only = False
                else:
                    logger.debug(f"No relation found for oid {table_oid}, treating {desc.name} as read-only")

            columns.append(column)

        return columns

    def column_database_name(self, definition: SqlResourceDefinition, column: ResultColumn) -> str:
        return definition.default_database

    def column_qualified_table_name(self, definition: SqlResourceDefinition, column: ResultColumn) -> str:
        return f"{column.schema_name or DEFAULT_SCHEMA}.{column.table_name}"

    def qualified_table_name(self, access, database_name: str, table_name: str) -> str:
        rows = access.query(self.SCHEMA_QUERY, (database_name, table_name))
        schema = rows[0][0] if rows else DEFAULT_SCHEMA
        return f"{schema}.{table_name}"

    def columns_query(self) -> str:
        return self.COLUMNS_QUERY

    def primary_key_query(self) -> str:
        return self.PRIMARY_KEY_QUERY
