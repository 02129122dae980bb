"""
Exception types raised while building SQL resource metadata.

Every error carries a human readable message plus a ``details`` dict with
identifying context (column label, table name, SQL text) for logs and CLI output.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class SqlResourceError(Exception):
    """Base exception for all sqlresource errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


class DefinitionError(SqlResourceError):
    """
    The resource definition does not match what the probe query returned.

    Raised for undeclared tables, a second Parent/Child/Join table, or
    definition content that fails validation.
    """


class SchemaAccessError(SqlResourceError):
    """A database or catalog call failed. Carries the offending statement."""

    def __init__(
        self,
        message: str,
        sql: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if sql is not None:
            details["sql"] = sql
        super().__init__(message, details)
        self.sql = sql

    def __str__(self) -> str:
        if self.sql:
            return f"{self.message} [sql: {self.sql}]"
        return self.message


class ResourceNotReady(SqlResourceError):
    """No metadata has been successfully built for the requested resource."""

    def __init__(self, resource_name: str):
        super().__init__(
            f"Metadata for resource '{resource_name}' has not been built",
            {"resource": resource_name},
        )
        self.resource_name = resource_name
