"""
# Database Package

Persistence layer of the client, built on **Motor** (async MongoDB driver).

- **`manager`**: `ConnectionManager` and `ConnectionHandle`; builds the
  application and admin URIs and guarantees reverse-order release.
- **`health`**: `HealthGate`, the bounded-retry readiness check run before any
  query is issued.
"""

from mongodb_client.database.health import HealthGate, ping_probe
from mongodb_client.database.manager import ConnectionHandle, ConnectionManager

__all__ = ["ConnectionHandle", "ConnectionManager", "HealthGate", "ping_probe"]
