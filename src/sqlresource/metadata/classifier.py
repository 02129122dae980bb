"""
Column and table classification.

Turns the column shape of a probe result into TableMetadata and
ColumnMetadata objects and files each table and column into the buckets its
role calls for.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, NamedTuple, Optional, Set

from sqlresource.definition import SqlResourceDefinition
from sqlresource.errors import DefinitionError
from sqlresource.metadata.dialect import ColumnIdentity, ResultColumn, SqlDialect
from sqlresource.models import (
    ColumnMetadata,
    SqlResourceMetaData,
    TableMetadata,
    TableRole,
)

logger = logging.getLogger(__name__)


class RoleBuckets(NamedTuple):
    """Where tables and columns of one role are filed."""
    pointer: Optional[str]  # BuildState attribute holding the role's single table
    plus_ext: Optional[str]  # plus-extension table list
    read_columns: Optional[str]  # role-partitioned read column list
    takes_alias: bool


ROLE_BUCKETS: Dict[TableRole, RoleBuckets] = {
    TableRole.PARENT: RoleBuckets("parent", "parent_plus_ext_tables", "parent_read_columns", True),
    TableRole.PARENT_EXTENSION: RoleBuckets(None, "parent_plus_ext_tables", "parent_read_columns", False),
    TableRole.CHILD: RoleBuckets("child", "child_plus_ext_tables", "child_read_columns", True),
    TableRole.CHILD_EXTENSION: RoleBuckets(None, "child_plus_ext_tables", "child_read_columns", False),
    TableRole.JOIN: RoleBuckets("join", None, None, False),
    TableRole.UNKNOWN: RoleBuckets(None, None, None, False),
}


@dataclass
class BuildState:
    """Working set of a single metadata build."""
    resource_name: str
    tables: List[TableMetadata] = field(default_factory=list)
    table_map: Dict[str, TableMetadata] = field(default_factory=dict)
    parent: Optional[TableMetadata] = None
    child: Optional[TableMetadata] = None
    join: Optional[TableMetadata] = None
    parent_plus_ext_tables: List[TableMetadata] = field(default_factory=list)
    child_plus_ext_tables: List[TableMetadata] = field(default_factory=list)
    all_read_columns: List[ColumnMetadata] = field(default_factory=list)
    parent_read_columns: List[ColumnMetadata] = field(default_factory=list)
    child_read_columns: List[ColumnMetadata] = field(default_factory=list)
    databases: Set[str] = field(default_factory=set)

    @property
    def join_list(self) -> List[TableMetadata]:
        return [self.join] if self.join is not None else []

    @property
    def multiple_databases(self) -> bool:
        return len(self.databases) > 1

    def add_table(self, table: TableMetadata) -> None:
        self.table_map[table.qualified_table_name] = table
        self.tables.append(table)

    def find_table(self, qualified_name: str) -> Optional[TableMetadata]:
        """Look up a table by qualified name, ignoring case."""
        table = self.table_map.get(qualified_name)
        if table is None:
            key = qualified_name.lower()
            table = next((t for name, t in self.table_map.items() if name.lower() == key), None)
        return table

    def to_metadata(self) -> SqlResourceMetaData:
        """Assemble the finished aggregate."""
        metadata = SqlResourceMetaData(
            resource_name=self.resource_name,
            tables=tuple(self.tables),
            table_map=MappingProxyType(dict(self.table_map)),
            parent=self.parent,
            child=self.child,
            join=self.join,
            join_list=tuple(self.join_list),
            parent_plus_ext_tables=tuple(self.parent_plus_ext_tables),
            child_plus_ext_tables=tuple(self.child_plus_ext_tables),
            all_read_columns=tuple(self.all_read_columns),
            parent_read_columns=tuple(self.parent_read_columns),
            child_read_columns=tuple(self.child_read_columns),
            multiple_databases=self.multiple_databases,
        )
        for table in self.tables:
            for column in table.columns.values():
                column.sql_resource = metadata
        return metadata


class TableColumnClassifier:
    """Builds tables and columns from a probe result shape."""

    def __init__(self, definition: SqlResourceDefinition, dialect: SqlDialect):
        self.definition = definition
        self.dialect = dialect

    def classify(
        self,
        access,
        resource_name: str,
        result_columns: List[ResultColumn],
    ) -> BuildState:
        """
        Classify every probe column into its table and role buckets.

        Args:
            access: SchemaAccess for the build's connection
            resource_name: Name of the resource being built
            result_columns: Columns described from the probe result

        Returns:
            BuildState with tables, columns and role lists populated

        Raises:
            DefinitionError: if a column's table is not declared, or a second
                Parent, Child or Join table is found
        """
        state = BuildState(resource_name=resource_name)

        for result_column in result_columns:
            identity = self.dialect.column_identity(access, self.definition, result_column)
            if not result_column.read_only:
                state.databases.add(identity.database_name)

            if result_column.read_only and state.parent is not None:
                table = state.parent
            else:
                table = state.find_table(identity.qualified_table_name)
            if table is None:
                table = self._create_table(state, identity, result_column)

            column = ColumnMetadata(
                database_name=table.database_name,
                qualified_table_name=table.qualified_table_name,
                table_name=table.table_name,
                column_name=identity.column_name,
                column_label=result_column.label,
                table_role=table.table_role,
                column_type_name=result_column.type_name,
                column_type=result_column.type_code,
                column_number=result_column.position,
                read_only=result_column.read_only,
            )
            table.add_column(column)

            state.all_read_columns.append(column)
            buckets = ROLE_BUCKETS[table.table_role]
            if buckets.read_columns:
                getattr(state, buckets.read_columns).append(column)

        logger.debug(
            f"Classified {len(result_columns)} columns into {len(state.tables)} tables "
            f"across {len(state.databases)} databases"
        )
        return state

    def _create_table(
        self,
        state: BuildState,
        identity: ColumnIdentity,
        result_column: ResultColumn,
    ) -> TableMetadata:
        table_def = self.definition.get_table_for_column(
            identity.database_name,
            identity.table_name,
            identity.qualified_table_name,
        )
        if table_def is None:
            raise DefinitionError(
                f"Definition requires table element for {identity.table_name}, "
                f"referenced by column {result_column.label}",
                {"table": identity.table_name, "column": result_column.label},
            )

        role = TableRole(table_def.role)
        table = TableMetadata(
            table_name=identity.table_name,
            qualified_table_name=identity.qualified_table_name,
            database_name=identity.database_name,
            table_role=role,
        )

        buckets = ROLE_BUCKETS[role]
        if buckets.pointer:
            existing = getattr(state, buckets.pointer)
            if existing is not None:
                raise DefinitionError(
                    f"Resource has more than one {role.value} table: "
                    f"{existing.qualified_table_name}, {table.qualified_table_name}",
                    {
                        "role": role.value,
                        "tables": [existing.qualified_table_name, table.qualified_table_name],
                    },
                )
            setattr(state, buckets.pointer, table)
        if buckets.takes_alias and table_def.alias:
            table.table_alias = table_def.alias
        if buckets.plus_ext:
            getattr(state, buckets.plus_ext).append(table)

        state.add_table(table)
        logger.debug(f"Found {role.value} table {table.qualified_table_name}")
        return table
