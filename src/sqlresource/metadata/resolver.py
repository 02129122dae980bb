"""
Metadata resolver: builds SqlResourceMetaData for a resource definition.

A build runs on one connection as a fixed sequence of steps:

1. Probe the main query for a single row and describe its columns
2. Classify columns into tables by role
3. Mark primary keys from the catalog
4. Back-fill foreign key columns the query did not select
5. Add the join table if the query did not select from it

Any failure aborts the build and nothing is returned.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlresource.definition import SqlResourceDefinition
from sqlresource.metadata.access import SchemaAccess
from sqlresource.metadata.classifier import TableColumnClassifier
from sqlresource.metadata.dialect import SqlDialect
from sqlresource.metadata.join import JoinTableResolver
from sqlresource.metadata.keys import ForeignKeyResolver, PrimaryKeyResolver
from sqlresource.models import SqlResourceMetaData

if TYPE_CHECKING:
    from sqlresource.config import ConnectionConfig
    from sqlresource.connections import ConnectionFactory

logger = logging.getLogger(__name__)


class MetadataResolver:
    """
    Resolves table and column metadata for SQL resources.

    The resolver holds no per-resource state; each call to :meth:`build`
    returns a new, complete SqlResourceMetaData.
    """

    def __init__(self, connection_factory: ConnectionFactory, dialect: SqlDialect):
        self.connection_factory = connection_factory
        self.dialect = dialect
        self.primary_keys = PrimaryKeyResolver()
        self.foreign_keys = ForeignKeyResolver()

    @classmethod
    def from_config(cls, config: ConnectionConfig) -> MetadataResolver:
        """Create a resolver for the dialect named in ``config``."""
        from sqlresource.connections import ConnectionFactory
        from sqlresource.metadata import get_dialect

        dialect = get_dialect(config.dialect)
        return cls(ConnectionFactory(config, dialect), dialect)

    def build(self, resource_name: str, definition: SqlResourceDefinition) -> SqlResourceMetaData:
        """
        Build metadata for a resource.

        Args:
            resource_name: Name the resource is published under
            definition: Resource definition with query and table roles

        Returns:
            Newly built SqlResourceMetaData

        Raises:
            DefinitionError: if the definition is invalid or does not match the query
            SchemaAccessError: if any database or catalog statement fails
        """
        definition.validate()
        sql = self.dialect.probe_query(definition)
        logger.debug(f"Loading metadata for {resource_name} - {sql}")

        with self.connection_factory.connect(definition.default_database) as connection:
            access = SchemaAccess(connection, self.dialect)

            result_columns = access.probe(sql)
            classifier = TableColumnClassifier(definition, self.dialect)
            state = classifier.classify(access, resource_name, result_columns)

            self.primary_keys.resolve(access, state)
            self.foreign_keys.resolve(access, state)
            JoinTableResolver(definition, self.dialect).resolve(access, state)

        metadata = state.to_metadata()
        logger.info(
            f"Resolved {resource_name}: {metadata.number_of_tables} tables, "
            f"{len(metadata.all_read_columns)} read columns, "
            f"hierarchical={metadata.hierarchical}, multiple_databases={metadata.multiple_databases}"
        )
        return metadata
