"""
Core data models for the sqlresource package.

Defines table and column metadata, the per-resource metadata aggregate, and
its serializable extended view.
"""

from __future__ import annotations

import json
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


NAMESPACE = "urn:sqlresource:metadata"


class TableRole(str, Enum):
    """Function of a table within a SQL resource."""
    PARENT = "Parent"
    PARENT_EXTENSION = "ParentExtension"
    CHILD = "Child"
    CHILD_EXTENSION = "ChildExtension"
    JOIN = "Join"
    UNKNOWN = "Unknown"


class _FixedRole:
    """Allows ``table_role`` to be assigned exactly once."""

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "table_role" and "table_role" in self.__dict__:
            raise AttributeError(f"table_role of {self!r} cannot be reassigned")
        super().__setattr__(name, value)


@dataclass
class ColumnMetadata(_FixedRole):
    """Metadata for a single column of a SQL resource."""
    database_name: str
    qualified_table_name: str
    table_name: str
    column_name: str
    column_label: str
    table_role: TableRole
    column_type_name: Optional[str] = None
    column_type: Optional[int] = None  # driver type code
    column_number: int = 0  # 1-based probe position, 0 when synthesized
    read_only: bool = False
    primary_key: bool = False
    non_queried_foreign_key: bool = False

    # Lookup only, set when the owning aggregate is assembled
    sql_resource: Optional[SqlResourceMetaData] = field(
        default=None, repr=False, compare=False
    )

    @property
    def qualified_column_name(self) -> str:
        return f"{self.qualified_table_name}.{self.column_name}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "column_number": self.column_number,
            "database_name": self.database_name,
            "qualified_table_name": self.qualified_table_name,
            "table_name": self.table_name,
            "column_name": self.column_name,
            "column_label": self.column_label,
            "qualified_column_name": self.qualified_column_name,
            "column_type_name": self.column_type_name,
            "column_type": self.column_type,
            "read_only": self.read_only,
            "primary_key": self.primary_key,
            "non_queried_foreign_key": self.non_queried_foreign_key,
            "table_role": self.table_role.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ColumnMetadata:
        """Create from dictionary."""
        return cls(
            database_name=data["database_name"],
            qualified_table_name=data["qualified_table_name"],
            table_name=data["table_name"],
            column_name=data["column_name"],
            column_label=data.get("column_label", data["column_name"]),
            table_role=TableRole(data["table_role"]),
            column_type_name=data.get("column_type_name"),
            column_type=data.get("column_type"),
            column_number=data.get("column_number", 0),
            read_only=data.get("read_only", False),
            primary_key=data.get("primary_key", False),
            non_queried_foreign_key=data.get("non_queried_foreign_key", False),
        )


@dataclass
class TableMetadata(_FixedRole):
    """Metadata for a table participating in a SQL resource."""
    table_name: str
    qualified_table_name: str
    database_name: str
    table_role: TableRole
    table_alias: Optional[str] = None
    columns: Dict[str, ColumnMetadata] = field(default_factory=dict)
    primary_keys: List[ColumnMetadata] = field(default_factory=list)

    @property
    def is_parent(self) -> bool:
        return self.table_role == TableRole.PARENT

    @property
    def is_child(self) -> bool:
        return self.table_role == TableRole.CHILD

    @property
    def is_join(self) -> bool:
        return self.table_role == TableRole.JOIN

    def add_column(self, column: ColumnMetadata) -> None:
        self.columns[column.column_name] = column

    def add_primary_key(self, column: ColumnMetadata) -> None:
        """Flag a column as primary key and append it once to the key list."""
        column.primary_key = True
        if not any(pk is column for pk in self.primary_keys):
            self.primary_keys.append(column)

    def get_column(self, name: str) -> Optional[ColumnMetadata]:
        return self.columns.get(name)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "table_name": self.table_name,
            "qualified_table_name": self.qualified_table_name,
            "database_name": self.database_name,
            "table_role": self.table_role.value,
            "table_alias": self.table_alias,
            "columns": [c.to_dict() for c in self.columns.values()],
            "primary_keys": [pk.column_name for pk in self.primary_keys],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TableMetadata:
        """Create from dictionary."""
        table = cls(
            table_name=data["table_name"],
            qualified_table_name=data["qualified_table_name"],
            database_name=data["database_name"],
            table_role=TableRole(data["table_role"]),
            table_alias=data.get("table_alias"),
        )
        for cdata in data.get("columns", []):
            table.add_column(ColumnMetadata.from_dict(cdata))
        for pk_name in data.get("primary_keys", []):
            column = table.get_column(pk_name)
            if column:
                table.add_primary_key(column)
        return table


def _table_name(table: Optional[TableMetadata]) -> Optional[str]:
    return table.qualified_table_name if table else None


@dataclass
class ExtendedMetadata:
    """
    Serializable view of a SqlResourceMetaData.

    Holds qualified names instead of object references so the view can be
    written out as JSON or XML and parsed back.
    """
    resource_name: str
    hierarchical: bool
    multiple_databases: bool
    tables: List[Dict[str, Any]] = field(default_factory=list)
    parent_table_name: Optional[str] = None
    child_table_name: Optional[str] = None
    join_table_name: Optional[str] = None
    parent_plus_ext_table_names: List[str] = field(default_factory=list)
    child_plus_ext_table_names: List[str] = field(default_factory=list)
    join_table_names: List[str] = field(default_factory=list)
    all_read_column_names: List[str] = field(default_factory=list)
    parent_read_column_names: List[str] = field(default_factory=list)
    child_read_column_names: List[str] = field(default_factory=list)

    # Element name used for the items of each name list in XML
    LIST_ITEMS = {
        "parent_plus_ext_table_names": "table",
        "child_plus_ext_table_names": "table",
        "join_table_names": "table",
        "all_read_column_names": "column",
        "parent_read_column_names": "column",
        "child_read_column_names": "column",
    }
    SCALARS = ("parent_table_name", "child_table_name", "join_table_name")

    _COLUMN_INTS = ("column_number", "column_type")
    _COLUMN_BOOLS = ("read_only", "primary_key", "non_queried_foreign_key")

    @classmethod
    def from_metadata(cls, metadata: SqlResourceMetaData) -> ExtendedMetadata:
        return cls(
            resource_name=metadata.resource_name,
            hierarchical=metadata.hierarchical,
            multiple_databases=metadata.multiple_databases,
            tables=[t.to_dict() for t in metadata.tables],
            parent_table_name=_table_name(metadata.parent),
            child_table_name=_table_name(metadata.child),
            join_table_name=_table_name(metadata.join),
            parent_plus_ext_table_names=[t.qualified_table_name for t in metadata.parent_plus_ext_tables],
            child_plus_ext_table_names=[t.qualified_table_name for t in metadata.child_plus_ext_tables],
            join_table_names=[t.qualified_table_name for t in metadata.join_list],
            all_read_column_names=[c.qualified_column_name for c in metadata.all_read_columns],
            parent_read_column_names=[c.qualified_column_name for c in metadata.parent_read_columns],
            child_read_column_names=[c.qualified_column_name for c in metadata.child_read_columns],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        data: Dict[str, Any] = {
            "namespace": NAMESPACE,
            "resource_name": self.resource_name,
            "hierarchical": self.hierarchical,
            "multiple_databases": self.multiple_databases,
            "tables": self.tables,
        }
        for name in self.SCALARS:
            data[name] = getattr(self, name)
        for name in self.LIST_ITEMS:
            data[name] = list(getattr(self, name))
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ExtendedMetadata:
        """Create from dictionary."""
        kwargs = {name: data.get(name) for name in cls.SCALARS}
        kwargs.update({name: list(data.get(name) or []) for name in cls.LIST_ITEMS})
        return cls(
            resource_name=data["resource_name"],
            hierarchical=data.get("hierarchical", False),
            multiple_databases=data.get("multiple_databases", False),
            tables=data.get("tables", []),
            **kwargs,
        )

    def to_xml(self) -> str:
        """Render as namespaced XML."""
        ET.register_namespace("", NAMESPACE)
        root = ET.Element(_qname("sql_resource_metadata"), {
            "resource_name": self.resource_name,
            "hierarchical": _xml_bool(self.hierarchical),
            "multiple_databases": _xml_bool(self.multiple_databases),
        })

        tables_el = ET.SubElement(root, _qname("tables"))
        for tdata in self.tables:
            attrs = {
                k: str(tdata[k])
                for k in ("table_name", "qualified_table_name", "database_name", "table_role", "table_alias")
                if tdata.get(k) is not None
            }
            table_el = ET.SubElement(tables_el, _qname("table"), attrs)
            for cdata in tdata.get("columns", []):
                ET.SubElement(table_el, _qname("column"), {
                    k: _xml_bool(v) if isinstance(v, bool) else str(v)
                    for k, v in cdata.items() if v is not None
                })
            for pk_name in tdata.get("primary_keys", []):
                ET.SubElement(table_el, _qname("primary_key")).text = pk_name

        for name in self.SCALARS:
            value = getattr(self, name)
            if value is not None:
                ET.SubElement(root, _qname(name)).text = value

        for name, item_tag in self.LIST_ITEMS.items():
            wrapper = ET.SubElement(root, _qname(name))
            for value in getattr(self, name):
                ET.SubElement(wrapper, _qname(item_tag)).text = value

        ET.indent(root)
        return ET.tostring(root, encoding="unicode")

    @classmethod
    def from_xml(cls, text: str) -> ExtendedMetadata:
        """Parse XML produced by :meth:`to_xml`."""
        root = ET.fromstring(text)

        tables = []
        for table_el in root.iterfind(f"{_qname('tables')}/{_qname('table')}"):
            tdata: Dict[str, Any] = {
                k: table_el.get(k)
                for k in ("table_name", "qualified_table_name", "database_name", "table_role", "table_alias")
            }
            tdata["columns"] = [
                cls._column_from_attrs(col_el.attrib)
                for col_el in table_el.iterfind(_qname("column"))
            ]
            tdata["primary_keys"] = [pk.text for pk in table_el.iterfind(_qname("primary_key"))]
            tables.append(tdata)

        data: Dict[str, Any] = {
            "resource_name": root.get("resource_name"),
            "hierarchical": root.get("hierarchical") == "true",
            "multiple_databases": root.get("multiple_databases") == "true",
            "tables": tables,
        }
        for name in cls.SCALARS:
            el = root.find(_qname(name))
            data[name] = el.text if el is not None else None
        for name, item_tag in cls.LIST_ITEMS.items():
            data[name] = [item.text for item in root.iterfind(f"{_qname(name)}/{_qname(item_tag)}")]
        return cls.from_dict(data)

    @classmethod
    def _column_from_attrs(cls, attrs: Dict[str, str]) -> Dict[str, Any]:
        cdata: Dict[str, Any] = dict(attrs)
        cdata.setdefault("column_type_name", None)
        for key in cls._COLUMN_INTS:
            cdata[key] = int(attrs[key]) if key in attrs else None
        for key in cls._COLUMN_BOOLS:
            cdata[key] = attrs.get(key) == "true"
        return cdata


def _qname(tag: str) -> str:
    return f"{{{NAMESPACE}}}{tag}"


def _xml_bool(value: bool) -> str:
    return "true" if value else "false"


@dataclass
class SqlResourceMetaData:
    """
    Table and column metadata for one SQL resource.

    Built once by the metadata resolver and not modified afterwards. A reload
    produces a new instance. The only state computed later is the extended
    view used for serialization, memoized on first use.

    Collections are tuples and ``table_map`` is a read-only mapping. The
    ``columns`` and ``primary_keys`` containers of each TableMetadata remain
    plain dict and list and must be treated as read-only once published.
    """
    resource_name: str
    tables: Tuple[TableMetadata, ...] = ()
    table_map: Mapping[str, TableMetadata] = field(default_factory=dict)
    parent: Optional[TableMetadata] = None
    child: Optional[TableMetadata] = None
    join: Optional[TableMetadata] = None
    join_list: Tuple[TableMetadata, ...] = ()
    parent_plus_ext_tables: Tuple[TableMetadata, ...] = ()
    child_plus_ext_tables: Tuple[TableMetadata, ...] = ()
    all_read_columns: Tuple[ColumnMetadata, ...] = ()
    parent_read_columns: Tuple[ColumnMetadata, ...] = ()
    child_read_columns: Tuple[ColumnMetadata, ...] = ()
    multiple_databases: bool = False

    _extended: Optional[ExtendedMetadata] = field(
        default=None, init=False, repr=False, compare=False
    )

    @property
    def hierarchical(self) -> bool:
        return self.child is not None

    @property
    def has_join_table(self) -> bool:
        return self.join is not None

    @property
    def number_of_tables(self) -> int:
        return len(self.tables)

    def get_table(self, qualified_name: str) -> Optional[TableMetadata]:
        return self.table_map.get(qualified_name)

    def extended(self) -> ExtendedMetadata:
        """Return the serializable view, computing it on first call."""
        if self._extended is None:
            self._extended = ExtendedMetadata.from_metadata(self)
        return self._extended

    def to_dict(self) -> Dict[str, Any]:
        return self.extended().to_dict()

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    def to_xml(self) -> str:
        return self.extended().to_xml()
