"""Adapters - Infrastructure implementations of core interfaces.

This package contains the concrete implementations of the Protocol
interfaces defined in the core module.

Adapters are organized by type:
- db/: asyncpg connection pool for the application database
- sharing/: SharingRepository implementations (PostgreSQL, in-memory)
"""

from .db import AppDatabase
from .sharing import InMemorySharingRepository, PostgresSharingRepository

__all__ = [
    "AppDatabase",
    "InMemorySharingRepository",
    "PostgresSharingRepository",
]
