"""
SQL resource definitions.

A definition names the default database, the main query and the role of
every table the query touches. Definitions are stored as YAML files:

    default_database: shop
    query: |
      SELECT o.id, o.total FROM orders o
    tables:
      - name: orders
        role: Parent
        alias: order
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from sqlresource.errors import DefinitionError
from sqlresource.models import TableRole

logger = logging.getLogger(__name__)

SINGLETON_ROLES = (TableRole.PARENT, TableRole.CHILD, TableRole.JOIN)


@dataclass
class TableDefinition:
    """Declaration of one table used by a resource."""
    name: str
    role: str
    alias: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {"name": self.name, "role": self.role}
        if self.alias:
            data["alias"] = self.alias
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableDefinition:
        return cls(
            name=data["name"],
            role=data.get("role", TableRole.UNKNOWN.value),
            alias=data.get("alias"),
        )


@dataclass
class SqlResourceDefinition:
    """Declarative description of a SQL resource."""
    default_database: str
    query: str
    tables: List[TableDefinition] = field(default_factory=list)

    def get_table(self, role: TableRole) -> Optional[TableDefinition]:
        """Return the first table declared with ``role``."""
        for table in self.tables:
            if table.role == role.value:
                return table
        return None

    def get_table_for_column(
        self,
        database_name: str,
        table_name: str,
        qualified_table_name: str,
    ) -> Optional[TableDefinition]:
        """
        Find the declaration for the table a probed column belongs to.

        A declaration matches when its name equals the bare table name, the
        dialect-qualified name or ``database.table``, or when its alias equals
        the bare table name. Comparison is case-insensitive.
        """
        candidates = {
            table_name.lower(),
            qualified_table_name.lower(),
            f"{database_name}.{table_name}".lower(),
        }
        for table in self.tables:
            if table.name.lower() in candidates:
                return table
            if table.alias and table.alias.lower() == table_name.lower():
                return table
        return None

    def validate(self) -> None:
        """
        Check the definition is usable for a metadata build.

        Raises:
            DefinitionError: if the definition is incomplete or inconsistent
        """
        if not self.query or not self.query.strip():
            raise DefinitionError("Definition requires a query")
        if not self.default_database:
            raise DefinitionError("Definition requires a default database")
        if not self.tables:
            raise DefinitionError("Definition requires at least one table element")

        valid_roles = {role.value for role in TableRole}
        for table in self.tables:
            if table.role not in valid_roles:
                raise DefinitionError(
                    f"Table {table.name} has invalid role {table.role}",
                    {"table": table.name, "role": table.role},
                )

        for role in SINGLETON_ROLES:
            declared = [t.name for t in self.tables if t.role == role.value]
            if len(declared) > 1:
                raise DefinitionError(
                    f"Definition declares more than one {role.value} table: {', '.join(declared)}",
                    {"role": role.value, "tables": declared},
                )

        if self.get_table(TableRole.PARENT) is None:
            raise DefinitionError("Definition requires a Parent table")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_database": self.default_database,
            "query": self.query,
            "tables": [t.to_dict() for t in self.tables],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> SqlResourceDefinition:
        return cls(
            default_database=data.get("default_database", ""),
            query=data.get("query", ""),
            tables=[TableDefinition.from_dict(t) for t in data.get("tables", [])],
        )


def load_definition(path: Path) -> SqlResourceDefinition:
    """Load a definition from a YAML file."""
    path = Path(path)
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise DefinitionError(f"Definition file {path} must contain a mapping", {"path": str(path)})

    definition = SqlResourceDefinition.from_dict(data)
    logger.info(f"Loaded definition with {len(definition.tables)} tables from {path}")
    return definition
