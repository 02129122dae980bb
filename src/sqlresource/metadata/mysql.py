"""
MySQL dialect using PyMySQL.

Column identity comes from the field descriptors PyMySQL keeps for the last
result; catalog lookups go through information_schema.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlresource.definition import SqlResourceDefinition
from sqlresource.metadata.dialect import ResultColumn, SqlDialect


_FIELD_TYPE_NAMES: Optional[Dict[int, str]] = None


def field_type_names() -> Dict[int, str]:
    """Map PyMySQL field type codes to their constant names."""
    global _FIELD_TYPE_NAMES
    if _FIELD_TYPE_NAMES is None:
        from pymysql.constants import FIELD_TYPE

        names: Dict[int, str] = {}
        for name, code in vars(FIELD_TYPE).items():
            if name.isupper() and isinstance(code, int):
                names.setdefault(code, name)
        _FIELD_TYPE_NAMES = names
    return _FIELD_TYPE_NAMES


def _text(value: Any) -> str:
    # PyMySQL leaves catalog and db as bytes
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return value or ""


class MySqlDialect(SqlDialect):
    """MySQL / MariaDB."""

    name = "mysql"
    default_port = 3306

    COLUMNS_QUERY = """
        SELECT column_name, data_type
        FROM information_schema.columns
        WHERE table_schema = %s AND table_name = %s
        ORDER BY ordinal_position
    """

    PRIMARY_KEY_QUERY = """
        SELECT column_name
        FROM information_schema.key_column_usage
        WHERE constraint_name = 'PRIMARY'
            AND table_schema = %s
            AND table_name = %s
        ORDER BY ordinal_position
    """

    def connect(self, config, database: str) -> Any:
        import pymysql

        return pymysql.connect(
            host=config.host,
            port=config.port or self.default_port,
            user=config.user,
            password=config.password or "",
            database=database,
            **config.options,
        )

    def describe_result(self, cursor, access) -> List[ResultColumn]:
        result = getattr(cursor, "_result", None)
        fields = (result.fields if result is not None else None) or []
        type_names = field_type_names()

        columns = []
        for position, field in enumerate(fields, start=1):
            label = _text(field.name)
            org_table = _text(field.org_table)
            columns.append(ResultColumn(
                position=position,
                label=label,
                column_name=_text(field.org_name) or label,
                table_name=org_table or None,
                database_name=_text(field.db) or None,
                type_name=type_names.get(field.type_code),
                type_code=field.type_code,
                read_only=not org_table,
            ))
        return columns

    def column_qualified_table_name(self, definition: SqlResourceDefinition, column: ResultColumn) -> str:
        return f"{self.column_database_name(definition, column)}.{column.table_name}"

    def qualified_table_name(self, access, database_name: str, table_name: str) -> str:
        return f"{database_name}.{table_name}"

    def columns_query(self) -> str:
        return self.COLUMNS_QUERY

    def primary_key_query(self) -> str:
        return self.PRIMARY_KEY_QUERY
