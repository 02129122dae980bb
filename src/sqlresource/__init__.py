"""
sqlresource - Relational metadata for REST-addressable SQL resources

Derives table and column metadata for a resource from its SQL query and a
short declaration of table roles, without duplicating key and column details
by hand.

Features:
- Single-row probe of the resource query to learn its result shape
- Table role classification (parent, child, extensions, join)
- Primary keys from the database catalog
- Foreign key back-fill by primary key name matching
- Many-to-many join table resolution
- MySQL and PostgreSQL dialects
"""

__version__ = "0.1.0"

from sqlresource.models import (
    ColumnMetadata,
    ExtendedMetadata,
    SqlResourceMetaData,
    TableMetadata,
    TableRole,
)
from sqlresource.errors import (
    DefinitionError,
    ResourceNotReady,
    SchemaAccessError,
    SqlResourceError,
)
from sqlresource.definition import (
    SqlResourceDefinition,
    TableDefinition,
    load_definition,
)
from sqlresource.config import ConnectionConfig, load_config
from sqlresource.metadata import MetadataResolver, SqlDialect, get_dialect
from sqlresource.connections import ConnectionFactory
from sqlresource.registry import SqlResourceRegistry

__all__ = [
    # Models
    "ColumnMetadata",
    "ExtendedMetadata",
    "SqlResourceMetaData",
    "TableMetadata",
    "TableRole",
    # Errors
    "DefinitionError",
    "ResourceNotReady",
    "SchemaAccessError",
    "SqlResourceError",
    # Definitions and configuration
    "SqlResourceDefinition",
    "TableDefinition",
    "load_definition",
    "ConnectionConfig",
    "load_config",
    # Metadata building
    "ConnectionFactory",
    "MetadataResolver",
    "SqlDialect",
    "get_dialect",
    "SqlResourceRegistry",
]
