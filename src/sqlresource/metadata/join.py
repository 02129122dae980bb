"""
Join table resolution for many-to-many resources.

The join table usually does not appear in the query's select list, so its
metadata is read from the catalog instead of the probe result.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlresource.definition import SqlResourceDefinition
from sqlresource.metadata.classifier import BuildState
from sqlresource.metadata.dialect import SqlDialect
from sqlresource.models import ColumnMetadata, TableMetadata, TableRole

logger = logging.getLogger(__name__)


class JoinTableResolver:
    """Adds the declared join table when classification did not find it."""

    def __init__(self, definition: SqlResourceDefinition, dialect: SqlDialect):
        self.definition = definition
        self.dialect = dialect

    def split_name(self, name: str):
        """Split ``table.database`` on the first dot; database defaults to the resource's."""
        dot = name.find(".")
        if dot > 0:
            return name[:dot], name[dot + 1:]
        return name, self.definition.default_database

    def resolve(self, access, state: BuildState) -> Optional[TableMetadata]:
        if state.join is not None:
            return state.join

        join_def = self.definition.get_table(TableRole.JOIN)
        if join_def is None:
            return None

        table_name, database_name = self.split_name(join_def.name)
        qualified_name = self.dialect.qualified_table_name(access, database_name, table_name)

        existing = state.table_map.get(qualified_name)
        if existing is not None:
            logger.debug(f"Join table {qualified_name} already registered")
            return existing

        table = TableMetadata(
            table_name=table_name,
            qualified_table_name=qualified_name,
            database_name=database_name,
            table_role=TableRole.JOIN,
        )
        state.add_table(table)
        state.join = table

        for column_name, type_name in access.table_columns(database_name, table_name):
            table.add_column(ColumnMetadata(
                database_name=database_name,
                qualified_table_name=qualified_name,
                table_name=table_name,
                column_name=column_name,
                column_label=column_name,
                table_role=TableRole.JOIN,
                column_type_name=type_name,
            ))

        logger.debug(f"Resolved join table {qualified_name} with {len(table.columns)} columns")
        return table
