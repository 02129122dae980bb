"""
Registry of built SQL resource metadata.

Resources are published by name once their metadata is fully built. Reload
builds a new SqlResourceMetaData and then replaces the published reference
in a single assignment; readers holding the previous instance keep a
complete, unchanged snapshot. There is no lock around reload, so run
reloads outside serving windows when callers need a consistent view across
several lookups.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from sqlresource.definition import SqlResourceDefinition, load_definition
from sqlresource.errors import DefinitionError, ResourceNotReady, SqlResourceError
from sqlresource.metadata.resolver import MetadataResolver
from sqlresource.models import SqlResourceMetaData

logger = logging.getLogger(__name__)

DEFINITION_SUFFIX = ".yaml"


class SqlResourceRegistry:
    """Builds, publishes and reloads metadata for named resources."""

    def __init__(self, resolver: Optional[MetadataResolver], definitions_dir: Optional[Path] = None):
        self.resolver = resolver
        self.definitions_dir = Path(definitions_dir) if definitions_dir else None
        self._published: Dict[str, SqlResourceMetaData] = {}
        self._definitions: Dict[str, SqlResourceDefinition] = {}

    def load(self, name: str, definition: SqlResourceDefinition) -> SqlResourceMetaData:
        """Build metadata for ``definition`` and publish it under ``name``."""
        metadata = self.resolver.build(name, definition)
        self._definitions[name] = definition
        self._published[name] = metadata
        logger.info(f"Published metadata for {name}")
        return metadata

    def get(self, name: str) -> SqlResourceMetaData:
        """
        Return the published metadata for ``name``.

        Raises:
            ResourceNotReady: if no build of ``name`` has completed
        """
        metadata = self._published.get(name)
        if metadata is None:
            raise ResourceNotReady(name)
        return metadata

    def get_or_load(self, name: str) -> SqlResourceMetaData:
        """Return published metadata, building it from the definitions dir on first use."""
        metadata = self._published.get(name)
        if metadata is None:
            metadata = self.load(name, self.get_definition(name))
        return metadata

    def is_ready(self, name: str) -> bool:
        return name in self._published

    def reload(self, name: str) -> SqlResourceMetaData:
        """
        Rebuild metadata for ``name``.

        The definition is re-read from the definitions dir when one is
        configured, otherwise the last loaded definition is rebuilt. If the
        build fails the previously published metadata stays in place.
        """
        if self.definitions_dir is not None:
            definition = load_definition(self.definition_path(name))
        elif name in self._definitions:
            definition = self._definitions[name]
        else:
            raise ResourceNotReady(name)

        logger.info(f"Reloading metadata for {name}")
        return self.load(name, definition)

    def get_definition(self, name: str) -> SqlResourceDefinition:
        """Return the definition for ``name``, reading it from disk if not yet loaded."""
        if name in self._definitions:
            return self._definitions[name]
        return load_definition(self.definition_path(name))

    def definition_path(self, name: str) -> Path:
        if self.definitions_dir is None:
            raise SqlResourceError(f"No definitions directory configured for resource {name}")
        path = self.definitions_dir / f"{name}{DEFINITION_SUFFIX}"
        if not path.exists():
            raise DefinitionError(f"Definition file not found: {path}", {"resource": name})
        return path

    def resource_names(self) -> List[str]:
        """List resource names available in the definitions dir."""
        if self.definitions_dir is None or not self.definitions_dir.is_dir():
            raise SqlResourceError(f"Definitions directory does not exist: {self.definitions_dir}")
        return sorted(p.stem for p in self.definitions_dir.glob(f"*{DEFINITION_SUFFIX}"))
