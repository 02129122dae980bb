"""
Metadata introspection for SQL resources.

Provides the dialect hook surface with MySQL and PostgreSQL implementations,
and the resolver that builds SqlResourceMetaData from a definition.
"""

from typing import Dict, Type

from sqlresource.metadata.dialect import ColumnIdentity, ResultColumn, SqlDialect
from sqlresource.metadata.mysql import MySqlDialect
from sqlresource.metadata.postgresql import PostgreSqlDialect
from sqlresource.metadata.access import SchemaAccess
from sqlresource.metadata.classifier import ROLE_BUCKETS, BuildState, TableColumnClassifier
from sqlresource.metadata.keys import ForeignKeyResolver, PrimaryKeyResolver
from sqlresource.metadata.join import JoinTableResolver
from sqlresource.metadata.resolver import MetadataResolver

DIALECTS: Dict[str, Type[SqlDialect]] = {
    MySqlDialect.name: MySqlDialect,
    PostgreSqlDialect.name: PostgreSqlDialect,
}


def get_dialect(name: str) -> SqlDialect:
    """Return a dialect instance by configured name."""
    try:
        return DIALECTS[name.lower()]()
    except KeyError:
        raise ValueError(
            f"Unsupported dialect: {name}. Choose from {', '.join(sorted(DIALECTS))}"
        ) from None


__all__ = [
    "BuildState",
    "ColumnIdentity",
    "DIALECTS",
    "ForeignKeyResolver",
    "JoinTableResolver",
    "MetadataResolver",
    "MySqlDialect",
    "PostgreSqlDialect",
    "PrimaryKeyResolver",
    "ROLE_BUCKETS",
    "ResultColumn",
    "SchemaAccess",
    "SqlDialect",
    "TableColumnClassifier",
    "get_dialect",
]
