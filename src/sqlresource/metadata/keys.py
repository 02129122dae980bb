"""
Primary key and foreign key resolution.

Primary keys come from the catalog. Foreign keys are not looked up in the
catalog; a column a dependent table has but the query did not select is
attached when its name equals a primary key column of the governing table.
This misses foreign keys named differently from the key they reference.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlresource.metadata.classifier import BuildState
from sqlresource.models import ColumnMetadata, TableMetadata, TableRole

logger = logging.getLogger(__name__)


class PrimaryKeyResolver:
    """Marks primary key columns on every classified table."""

    def resolve(self, access, state: BuildState) -> None:
        for table in state.tables:
            pk_names = access.primary_key_columns(table.database_name, table.table_name)
            for name in pk_names:
                column = table.get_column(name)
                if column is not None:
                    table.add_primary_key(column)

            if not table.primary_keys:
                # Views and keyless tables are legal; their dependents get no back-fill
                logger.debug(f"No primary key columns selected for {table.qualified_table_name}")


class ForeignKeyResolver:
    """Back-fills correlation columns the query did not select."""

    def governing_table(self, state: BuildState, table: TableMetadata) -> Optional[TableMetadata]:
        """ChildExtension tables are governed by the Child, all others by the Parent."""
        if table.table_role == TableRole.CHILD_EXTENSION:
            return state.child
        return state.parent

    def resolve(self, access, state: BuildState) -> None:
        for table in state.tables:
            if table.is_parent:
                continue

            governing = self.governing_table(state, table)
            if governing is None or not governing.primary_keys:
                logger.debug(f"Skipping foreign key back-fill for {table.qualified_table_name}")
                continue

            pks = {pk.column_name: pk for pk in governing.primary_keys}
            for column_name, type_name in access.table_columns(table.database_name, table.table_name):
                if column_name in table.columns:
                    continue
                pk = pks.get(column_name)
                if pk is None:
                    continue

                table.add_column(ColumnMetadata(
                    database_name=table.database_name,
                    qualified_table_name=table.qualified_table_name,
                    table_name=table.table_name,
                    column_name=column_name,
                    column_label=pk.column_label,
                    table_role=table.table_role,
                    column_type_name=type_name,
                    read_only=True,
                    non_queried_foreign_key=True,
                ))
                logger.debug(
                    f"Added foreign key {table.qualified_table_name}.{column_name} "
                    f"referencing {governing.qualified_table_name}"
                )
