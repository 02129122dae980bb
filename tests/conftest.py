"""
Shared fixtures: in-memory stand-ins for a PyMySQL connection.

FakeCatalog holds what the "database" reports: the field descriptors of the
probe result plus information_schema columns and primary keys per
(database, table).
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Dict, List, Optional, Tuple

import pytest

from sqlresource.config import ConnectionConfig
from sqlresource.connections import ConnectionFactory
from sqlresource.definition import SqlResourceDefinition, TableDefinition
from sqlresource.metadata import MetadataResolver, MySqlDialect

VAR_STRING = 253
LONG = 3
NEWDECIMAL = 246


class FakeDriverError(Exception):
    """Stands in for a driver error such as pymysql.err.ProgrammingError."""


def field(label, table=None, column=None, db="shop", type_code=LONG):
    """Build a PyMySQL-style field descriptor. No table means a computed column."""
    if table is None:
        return SimpleNamespace(name=label, org_name="", org_table="", table_name="", db=b"", type_code=type_code)
    return SimpleNamespace(
        name=label,
        org_name=column or label,
        org_table=table,
        table_name=table,
        db=db.encode("utf-8"),
        type_code=type_code,
    )


class FakeCatalog:
    def __init__(
        self,
        probe_fields: List[SimpleNamespace],
        columns: Optional[Dict[Tuple[str, str], List[Tuple[str, str]]]] = None,
        primary_keys: Optional[Dict[Tuple[str, str], List[str]]] = None,
    ):
        self.probe_fields = probe_fields
        self.columns = columns or {}
        self.primary_keys = primary_keys or {}
        self.fail_on: Optional[str] = None


class FakeCursor:
    def __init__(self, connection: FakeConnection):
        self.connection = connection
        self._rows: List[tuple] = []
        self._result = None
        self.closed = False

    def execute(self, sql, params=None):
        self.connection.executed.append((sql, params))
        catalog = self.connection.catalog
        if catalog.fail_on and catalog.fail_on in sql:
            raise FakeDriverError(f"statement failed near '{catalog.fail_on}'")

        if sql == MySqlDialect.COLUMNS_QUERY:
            self._rows = list(catalog.columns.get(tuple(params), []))
        elif sql == MySqlDialect.PRIMARY_KEY_QUERY:
            self._rows = [(name,) for name in catalog.primary_keys.get(tuple(params), [])]
        else:
            self._result = SimpleNamespace(fields=catalog.probe_fields)
            self._rows = [tuple(None for _ in catalog.probe_fields)]

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)

    def close(self):
        self.closed = True


class FakeConnection:
    def __init__(self, catalog: FakeCatalog):
        self.catalog = catalog
        self.executed: List[Tuple[str, Optional[tuple]]] = []
        self.closed = False

    def cursor(self):
        return FakeCursor(self)

    def close(self):
        self.closed = True


class FakeMySqlDialect(MySqlDialect):
    """MySqlDialect that hands out fake connections instead of calling PyMySQL."""

    def __init__(self, catalog: FakeCatalog):
        self.catalog = catalog
        self.connections: List[FakeConnection] = []
        self.connected_to: List[str] = []

    def connect(self, config, database):
        self.connected_to.append(database)
        connection = FakeConnection(self.catalog)
        self.connections.append(connection)
        return connection


def make_resolver(catalog: FakeCatalog) -> MetadataResolver:
    dialect = FakeMySqlDialect(catalog)
    return MetadataResolver(ConnectionFactory(ConnectionConfig(dialect="mysql"), dialect), dialect)


def make_definition(query: str, *tables, default_database: str = "shop") -> SqlResourceDefinition:
    """tables are (name, role) or (name, role, alias) tuples."""
    return SqlResourceDefinition(
        default_database=default_database,
        query=query,
        tables=[TableDefinition(*t) for t in tables],
    )


ORDERS_QUERY = (
    "SELECT o.id, o.total, c.id AS customer_id "
    "FROM orders o JOIN customers c ON o.customer_id=c.id"
)


@pytest.fixture
def orders_catalog():
    """Orders joined to customers, both in the shop database."""
    return FakeCatalog(
        probe_fields=[
            field("id", "orders"),
            field("total", "orders", type_code=NEWDECIMAL),
            field("customer_id", "customers", column="id"),
        ],
        columns={
            ("shop", "orders"): [("id", "int"), ("total", "decimal"), ("customer_id", "int")],
            ("shop", "customers"): [("id", "int"), ("name", "varchar")],
        },
        primary_keys={
            ("shop", "orders"): ["id"],
            ("shop", "customers"): ["id"],
        },
    )


@pytest.fixture
def orders_definition():
    return make_definition(
        ORDERS_QUERY,
        ("orders", "Parent"),
        ("customers", "ParentExtension"),
    )


@pytest.fixture
def line_items_catalog():
    """Orders with child line items; the query does not select line_items.order_id."""
    return FakeCatalog(
        probe_fields=[
            field("order_id", "orders"),
            field("total", "orders", type_code=NEWDECIMAL),
            field("line_item_id", "line_items"),
            field("quantity", "line_items"),
        ],
        columns={
            ("shop", "orders"): [("order_id", "int"), ("total", "decimal")],
            ("shop", "line_items"): [("line_item_id", "int"), ("order_id", "int"), ("quantity", "int")],
        },
        primary_keys={
            ("shop", "orders"): ["order_id"],
            ("shop", "line_items"): ["line_item_id"],
        },
    )


@pytest.fixture
def line_items_definition():
    return make_definition(
        "SELECT o.order_id, o.total, li.line_item_id, li.quantity "
        "FROM orders o JOIN line_items li ON li.order_id = o.order_id",
        ("orders", "Parent", "order"),
        ("line_items", "Child", "item"),
    )
