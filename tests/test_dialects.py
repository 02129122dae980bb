"""Tests for the MySQL and PostgreSQL dialects."""

from types import SimpleNamespace

import pytest

from conftest import LONG, VAR_STRING, field, make_definition
from sqlresource.metadata import (
    DIALECTS,
    MySqlDialect,
    PostgreSqlDialect,
    ResultColumn,
    get_dialect,
)


class FakeAccess:
    """Answers SchemaAccess.query from a {sql: {params: rows}} table."""

    def __init__(self, answers):
        self.answers = answers
        self.queries = []

    def query(self, sql, params=None):
        self.queries.append((sql, params))
        return self.answers.get(sql, {}).get(params, [])


def orders_definition():
    return make_definition("SELECT o.id FROM orders o;  ", ("orders", "Parent"), ("customers", "ParentExtension"))


class TestGetDialect:

    def test_by_name(self):
        assert isinstance(get_dialect("mysql"), MySqlDialect)
        assert isinstance(get_dialect("PostgreSQL"), PostgreSqlDialect)
        assert set(DIALECTS) == {"mysql", "postgresql"}

    def test_unsupported(self):
        with pytest.raises(ValueError, match="Unsupported dialect: oracle"):
            get_dialect("oracle")


class TestProbeQuery:

    def test_limits_to_one_row(self):
        assert MySqlDialect().probe_query(orders_definition()) == "SELECT o.id FROM orders o LIMIT 1 OFFSET 0"


class TestMySqlDialect:
    """Tests for MySqlDialect."""

    @pytest.fixture
    def dialect(self):
        return MySqlDialect()

    def describe(self, dialect, fields):
        cursor = SimpleNamespace(_result=SimpleNamespace(fields=fields))
        return dialect.describe_result(cursor, access=None)

    def test_describe_result(self, dialect):
        columns = self.describe(dialect, [
            field("id", "orders"),
            field("customer_name", "customers", column="name", db="crm", type_code=VAR_STRING),
        ])

        assert columns[0] == ResultColumn(
            position=1,
            label="id",
            column_name="id",
            table_name="orders",
            database_name="shop",
            type_name="LONG",
            type_code=LONG,
            read_only=False,
        )
        assert columns[1].position == 2
        assert columns[1].label == "customer_name"
        assert columns[1].column_name == "name"
        assert columns[1].database_name == "crm"
        assert columns[1].type_name == "VAR_STRING"

    def test_computed_column_is_read_only(self, dialect):
        (column,) = self.describe(dialect, [field("order_count")])

        assert column.read_only is True
        assert column.table_name is None
        assert column.database_name is None
        assert column.column_name == "order_count"

    def test_no_result(self, dialect):
        assert dialect.describe_result(SimpleNamespace(_result=None), access=None) == []

    def test_column_identity(self, dialect):
        (column,) = self.describe(dialect, [field("customer_name", "customers", column="name", db="crm")])
        identity = dialect.column_identity(None, orders_definition(), column)

        assert identity.database_name == "crm"
        assert identity.table_name == "customers"
        assert identity.column_name == "name"
        assert identity.qualified_table_name == "crm.customers"

    def test_read_only_identity_uses_parent(self, dialect):
        (column,) = self.describe(dialect, [field("order_count")])
        identity = dialect.column_identity(None, orders_definition(), column)

        assert identity.database_name == "shop"
        assert identity.table_name == "orders"
        assert identity.qualified_table_name == "shop.orders"

    def test_qualified_table_name(self, dialect):
        assert dialect.qualified_table_name(None, "warehouse", "bins") == "warehouse.bins"


class TestPostgreSqlDialect:
    """Tests for PostgreSqlDialect."""

    @pytest.fixture
    def dialect(self):
        return PostgreSqlDialect()

    @pytest.fixture
    def access(self):
        return FakeAccess({
            PostgreSqlDialect.TYPE_QUERY: {
                (23,): [("int4",)],
                (1043,): [("varchar",)],
            },
            PostgreSqlDialect.RELATION_QUERY: {
                (16401, 1): [("public", "orders", "id")],
                (16410, 2): [("crm", "customers", "name")],
            },
            PostgreSqlDialect.SCHEMA_QUERY: {
                ("shop", "order_products"): [("sales",)],
            },
        })

    def description(self, name, type_code, table_oid=None, table_column=None):
        return SimpleNamespace(name=name, type_code=type_code, table_oid=table_oid, table_column=table_column)

    def test_describe_result(self, dialect, access):
        cursor = SimpleNamespace(description=[
            self.description("id", 23, 16401, 1),
            self.description("customer_name", 1043, 16410, 2),
            self.description("order_count", 23),
        ])
        columns = dialect.describe_result(cursor, access)

        assert [c.label for c in columns] == ["id", "customer_name", "order_count"]
        assert columns[0].table_name == "orders"
        assert columns[0].schema_name == "public"
        assert columns[0].type_name == "int4"
        assert columns[1].column_name == "name"
        assert columns[1].schema_name == "crm"
        assert columns[1].read_only is False
        assert columns[2].read_only is True
        assert columns[2].table_name is None

    def test_type_names_looked_up_once(self, dialect, access):
        cursor = SimpleNamespace(description=[
            self.description("a", 23),
            self.description("b", 23),
        ])
        dialect.describe_result(cursor, access)

        type_queries = [q for q in access.queries if q[0] == PostgreSqlDialect.TYPE_QUERY]
        assert type_queries == [(PostgreSqlDialect.TYPE_QUERY, (23,))]

    def test_unknown_relation_is_read_only(self, dialect, access):
        cursor = SimpleNamespace(description=[self.description("x", 23, 99999, 1)])
        (column,) = dialect.describe_result(cursor, access)
        assert column.read_only is True

    def test_identity_uses_default_database_and_schema(self, dialect, access):
        cursor = SimpleNamespace(description=[self.description("customer_name", 1043, 16410, 2)])
        (column,) = dialect.describe_result(cursor, access)
        identity = dialect.column_identity(access, orders_definition(), column)

        assert identity.database_name == "shop"
        assert identity.qualified_table_name == "crm.customers"
        assert identity.column_name == "name"

    def test_qualified_table_name_from_catalog(self, dialect, access):
        assert dialect.qualified_table_name(access, "shop", "order_products") == "sales.order_products"
        assert dialect.qualified_table_name(access, "shop", "bins") == "public.bins"
