"""Application database adapters.

Contents:
- app_db: asyncpg pool for the sharing tables (users, groups, user_groups,
  resources, resource_shares)
"""

from .app_db import AppDatabase

__all__ = ["AppDatabase"]
