"""
Connection configuration.

Connection settings, including which SQL dialect to use, are read from a
YAML file:

    dialect: mysql
    host: localhost
    port: 3306
    user: restsql
    password_env: SQLRESOURCE_DB_PASSWORD
    options:
      connect_timeout: 10
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ConnectionConfig:
    """Settings used to open database connections."""
    dialect: str
    host: str = "localhost"
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    options: Dict[str, Any] = field(default_factory=dict)  # passed through to the driver

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> ConnectionConfig:
        """Create from dictionary, reading the password from ``password_env`` if set."""
        if not data.get("dialect"):
            raise ValueError("Connection configuration requires a dialect")

        password = data.get("password")
        if data.get("password_env"):
            password = os.environ.get(data["password_env"], password)

        return cls(
            dialect=data["dialect"],
            host=data.get("host", "localhost"),
            port=data.get("port"),
            user=data.get("user"),
            password=password,
            options=data.get("options") or {},
        )


def load_config(path: Path) -> ConnectionConfig:
    """Load connection configuration from a YAML file."""
    path = Path(path)
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    # Accept either a flat mapping or one nested under "connection"
    if "connection" in data:
        data = data["connection"]

    config = ConnectionConfig.from_dict(data)
    logger.info(f"Loaded {config.dialect} connection configuration from {path}")
    return config
