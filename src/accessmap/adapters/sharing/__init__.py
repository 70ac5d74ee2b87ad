"""Sharing repository adapters."""

from accessmap.adapters.sharing.memory import InMemorySharingRepository
from accessmap.adapters.sharing.postgres import PostgresSharingRepository

__all__ = [
    "InMemorySharingRepository",
    "PostgresSharingRepository",
]
