"""PostgreSQL implementation of SharingRepository."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

import asyncpg
import structlog

from accessmap.adapters.db.app_db import AppDatabase
from accessmap.core.exceptions import ConflictError, ShareAlreadyExistsError, StorageError
from accessmap.core.sharing.types import (
    Group,
    Membership,
    Resource,
    ResourceShare,
    ShareTarget,
    ShareType,
    User,
)

logger = structlog.get_logger()

_USER_COLUMNS = "u.id, u.name, u.email, u.created_at"
_GROUP_COLUMNS = "g.id, g.name, g.description, g.created_at"
_RESOURCE_COLUMNS = "id, name, description, is_global, created_at"
_SHARE_COLUMNS = "id, resource_id, share_type, target_id, created_at"


class PostgresSharingRepository:
    """PostgreSQL implementation of sharing repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_user(self, row: dict[str, Any]) -> User:
        """Convert database row to User."""
        return User(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            created_at=row["created_at"],
        )

    def _row_to_group(self, row: dict[str, Any]) -> Group:
        """Convert database row to Group."""
        return Group(
            id=row["id"],
            name=row["name"],
            description=row.get("description"),
            created_at=row["created_at"],
        )

    def _row_to_resource(self, row: dict[str, Any]) -> Resource:
        """Convert database row to Resource."""
        return Resource(
            id=row["id"],
            name=row["name"],
            description=row.get("description"),
            is_global=row["is_global"],
            created_at=row["created_at"],
        )

    def _row_to_share(self, row: dict[str, Any]) -> ResourceShare:
        """Convert database row to ResourceShare."""
        return ResourceShare(
            id=row["id"],
            resource_id=row["resource_id"],
            target=ShareTarget(ShareType(row["share_type"]), row["target_id"]),
            created_at=row["created_at"],
        )

    # User operations
    async def get_user(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        row = await self._db.fetch_one(
            f"SELECT {_USER_COLUMNS} FROM users u WHERE u.id = $1",
            user_id,
        )
        return self._row_to_user(row) if row else None

    async def list_users(self, limit: int | None = None, offset: int = 0) -> list[User]:
        """List users ordered by name."""
        rows = await self._db.fetch_all(
            f"SELECT {_USER_COLUMNS} FROM users u ORDER BY u.name, u.id LIMIT $1 OFFSET $2",
            limit,
            offset,
        )
        return [self._row_to_user(row) for row in rows]

    async def count_users(self) -> int:
        """Count all users."""
        count: int = await self._db.fetch_val("SELECT COUNT(*) FROM users")
        return count

    async def create_user(self, name: str, email: str) -> User:
        """Create a new user."""
        try:
            row = await self._db.execute_returning(
                f"""
                INSERT INTO users AS u (name, email)
                VALUES ($1, $2)
                RETURNING {_USER_COLUMNS}
                """,
                name,
                email,
            )
        except asyncpg.UniqueViolationError as e:
            raise ConflictError(
                f"User with email '{email}' already exists", details={"email": email}
            ) from e
        if row is None:
            raise StorageError("create_user")
        return self._row_to_user(row)

    # Group operations
    async def get_group(self, group_id: UUID) -> Group | None:
        """Get group by ID."""
        row = await self._db.fetch_one(
            f"SELECT {_GROUP_COLUMNS} FROM groups g WHERE g.id = $1",
            group_id,
        )
        return self._row_to_group(row) if row else None

    async def list_groups(self, limit: int | None = None, offset: int = 0) -> list[Group]:
        """List groups ordered by name."""
        rows = await self._db.fetch_all(
            f"SELECT {_GROUP_COLUMNS} FROM groups g ORDER BY g.name, g.id LIMIT $1 OFFSET $2",
            limit,
            offset,
        )
        return [self._row_to_group(row) for row in rows]

    async def create_group(self, name: str, description: str | None = None) -> Group:
        """Create a new group."""
        row = await self._db.execute_returning(
            f"""
            INSERT INTO groups AS g (name, description)
            VALUES ($1, $2)
            RETURNING {_GROUP_COLUMNS}
            """,
            name,
            description,
        )
        if row is None:
            raise StorageError("create_group")
        return self._row_to_group(row)

    async def add_member(self, group_id: UUID, user_id: UUID) -> bool:
        """Add a user to a group."""
        result = await self._db.execute(
            """
            INSERT INTO user_groups (user_id, group_id)
            VALUES ($1, $2)
            ON CONFLICT (user_id, group_id) DO NOTHING
            """,
            user_id,
            group_id,
        )
        return result == "INSERT 0 1"

    async def remove_member(self, group_id: UUID, user_id: UUID) -> bool:
        """Remove a user from a group."""
        result = await self._db.execute(
            "DELETE FROM user_groups WHERE user_id = $1 AND group_id = $2",
            user_id,
            group_id,
        )
        return result == "DELETE 1"

    async def list_group_members(self, group_id: UUID) -> list[User]:
        """List users in a group."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users u
            JOIN user_groups ug ON u.id = ug.user_id
            WHERE ug.group_id = $1
            ORDER BY u.name, u.id
            """,
            group_id,
        )
        return [self._row_to_user(row) for row in rows]

    async def list_user_groups(self, user_id: UUID) -> list[Group]:
        """List groups a user belongs to."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_GROUP_COLUMNS}
            FROM groups g
            JOIN user_groups ug ON g.id = ug.group_id
            WHERE ug.user_id = $1
            ORDER BY g.name, g.id
            """,
            user_id,
        )
        return [self._row_to_group(row) for row in rows]

    async def get_user_group_ids(self, user_id: UUID) -> list[UUID]:
        """Get group IDs for a user."""
        rows = await self._db.fetch_all(
            "SELECT group_id FROM user_groups WHERE user_id = $1",
            user_id,
        )
        return [row["group_id"] for row in rows]

    async def list_memberships(self) -> list[Membership]:
        """List every membership row."""
        rows = await self._db.fetch_all("SELECT user_id, group_id, joined_at FROM user_groups")
        return [
            Membership(user_id=row["user_id"], group_id=row["group_id"], joined_at=row["joined_at"])
            for row in rows
        ]

    # Resource operations
    async def get_resource(self, resource_id: UUID) -> Resource | None:
        """Get resource by ID."""
        row = await self._db.fetch_one(
            f"SELECT {_RESOURCE_COLUMNS} FROM resources WHERE id = $1",
            resource_id,
        )
        return self._row_to_resource(row) if row else None

    async def list_resources(
        self,
        limit: int | None = None,
        offset: int = 0,
        global_only: bool = False,
    ) -> list[Resource]:
        """List resources ordered by name."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_RESOURCE_COLUMNS}
            FROM resources
            WHERE ($3::boolean IS FALSE OR is_global)
            ORDER BY name, id
            LIMIT $1 OFFSET $2
            """,
            limit,
            offset,
            global_only,
        )
        return [self._row_to_resource(row) for row in rows]

    async def count_resources(self, global_only: bool = False) -> int:
        """Count resources."""
        count: int = await self._db.fetch_val(
            "SELECT COUNT(*) FROM resources WHERE ($1::boolean IS FALSE OR is_global)",
            global_only,
        )
        return count

    async def create_resource(
        self,
        name: str,
        description: str | None = None,
        is_global: bool = False,
    ) -> Resource:
        """Create a new resource."""
        row = await self._db.execute_returning(
            f"""
            INSERT INTO resources (name, description, is_global)
            VALUES ($1, $2, $3)
            RETURNING {_RESOURCE_COLUMNS}
            """,
            name,
            description,
            is_global,
        )
        if row is None:
            raise StorageError("create_resource")
        return self._row_to_resource(row)

    async def update_resource(
        self,
        resource_id: UUID,
        name: str | None = None,
        description: str | None = None,
        is_global: bool | None = None,
        clear_description: bool = False,
    ) -> Resource | None:
        """Update resource fields."""
        updates = []
        params: list[Any] = [resource_id]
        param_idx = 2

        if name is not None:
            updates.append(f"name = ${param_idx}")
            params.append(name)
            param_idx += 1

        if clear_description:
            updates.append("description = NULL")
        elif description is not None:
            updates.append(f"description = ${param_idx}")
            params.append(description)
            param_idx += 1

        if is_global is not None:
            updates.append(f"is_global = ${param_idx}")
            params.append(is_global)
            param_idx += 1

        if not updates:
            return await self.get_resource(resource_id)

        updates.append("updated_at = NOW()")
        row = await self._db.execute_returning(
            f"""
            UPDATE resources SET {", ".join(updates)}
            WHERE id = $1
            RETURNING {_RESOURCE_COLUMNS}
            """,
            *params,
        )
        return self._row_to_resource(row) if row else None

    async def delete_resource(self, resource_id: UUID) -> bool:
        """Delete a resource. Shares are removed by ON DELETE CASCADE."""
        result = await self._db.execute(
            "DELETE FROM resources WHERE id = $1",
            resource_id,
        )
        return result == "DELETE 1"

    # Share operations
    async def create_share(self, resource_id: UUID, target: ShareTarget) -> ResourceShare:
        """Insert a share.

        The unique constraint on (resource_id, share_type, target_id) decides
        concurrent duplicate inserts; the loser gets ShareAlreadyExistsError.
        """
        try:
            row = await self._db.execute_returning(
                f"""
                INSERT INTO resource_shares (resource_id, share_type, target_id)
                VALUES ($1, $2, $3)
                RETURNING {_SHARE_COLUMNS}
                """,
                resource_id,
                target.kind.value,
                target.id,
            )
        except asyncpg.UniqueViolationError as e:
            logger.info(
                "share_already_exists",
                resource_id=str(resource_id),
                share_type=target.kind.value,
                target_id=str(target.id),
            )
            raise ShareAlreadyExistsError(resource_id, target.kind.value, target.id) from e
        if row is None:
            raise StorageError("create_share")
        return self._row_to_share(row)

    async def get_share(self, share_id: UUID) -> ResourceShare | None:
        """Get share by ID."""
        row = await self._db.fetch_one(
            f"SELECT {_SHARE_COLUMNS} FROM resource_shares WHERE id = $1",
            share_id,
        )
        return self._row_to_share(row) if row else None

    async def delete_share(self, share_id: UUID) -> bool:
        """Delete a share."""
        result = await self._db.execute(
            "DELETE FROM resource_shares WHERE id = $1",
            share_id,
        )
        return result == "DELETE 1"

    async def list_shares(self) -> list[ResourceShare]:
        """List every share row."""
        rows = await self._db.fetch_all(f"SELECT {_SHARE_COLUMNS} FROM resource_shares")
        return [self._row_to_share(row) for row in rows]

    async def list_resource_shares(self, resource_id: UUID) -> list[ResourceShare]:
        """List shares on one resource."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_SHARE_COLUMNS}
            FROM resource_shares
            WHERE resource_id = $1
            ORDER BY created_at, id
            """,
            resource_id,
        )
        return [self._row_to_share(row) for row in rows]

    async def list_shares_for_targets(
        self, user_id: UUID, group_ids: Sequence[UUID]
    ) -> list[ResourceShare]:
        """List shares naming the user or any of the groups."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_SHARE_COLUMNS}
            FROM resource_shares
            WHERE (share_type = 'user' AND target_id = $1)
               OR (share_type = 'group' AND target_id = ANY($2::uuid[]))
            """,
            user_id,
            list(group_ids),
        )
        return [self._row_to_share(row) for row in rows]

    async def count_resource_shares(self, resource_id: UUID, share_type: ShareType) -> int:
        """Count share rows of one kind on a resource."""
        count: int = await self._db.fetch_val(
            "SELECT COUNT(*) FROM resource_shares WHERE resource_id = $1 AND share_type = $2",
            resource_id,
            share_type.value,
        )
        return count

    async def find_direct_share_time(self, resource_id: UUID, user_id: UUID) -> datetime | None:
        """Creation time of the user's direct share, if any."""
        granted_at: datetime | None = await self._db.fetch_val(
            """
            SELECT created_at FROM resource_shares
            WHERE resource_id = $1 AND share_type = 'user' AND target_id = $2
            """,
            resource_id,
            user_id,
        )
        return granted_at

    async def find_group_share_time(
        self, resource_id: UUID, group_ids: Sequence[UUID]
    ) -> datetime | None:
        """Earliest creation time of a share naming any of the groups."""
        granted_at: datetime | None = await self._db.fetch_val(
            """
            SELECT MIN(created_at) FROM resource_shares
            WHERE resource_id = $1 AND share_type = 'group' AND target_id = ANY($2::uuid[])
            """,
            resource_id,
            list(group_ids),
        )
        return granted_at

    async def list_direct_share_users(self, resource_id: UUID) -> list[User]:
        """Users named by user-type shares on the resource."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users u
            JOIN resource_shares rs ON u.id = rs.target_id
            WHERE rs.resource_id = $1 AND rs.share_type = 'user'
            """,
            resource_id,
        )
        return [self._row_to_user(row) for row in rows]

    async def list_group_share_users(self, resource_id: UUID) -> list[User]:
        """Members of groups named by group-type shares on the resource."""
        rows = await self._db.fetch_all(
            f"""
            SELECT {_USER_COLUMNS}
            FROM users u
            JOIN user_groups ug ON u.id = ug.user_id
            JOIN resource_shares rs ON ug.group_id = rs.target_id
            WHERE rs.resource_id = $1 AND rs.share_type = 'group'
            """,
            resource_id,
        )
        return [self._row_to_user(row) for row in rows]
