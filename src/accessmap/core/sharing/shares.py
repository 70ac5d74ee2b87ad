"""Share management."""

from uuid import UUID

import structlog

from accessmap.core.exceptions import NotFoundError, ValidationError
from accessmap.core.sharing.repository import SharingRepository
from accessmap.core.sharing.types import ResourceShare, ShareTarget, ShareType

logger = structlog.get_logger()


class ShareService:
    """Creates and revokes resource shares."""

    def __init__(self, repo: SharingRepository) -> None:
        """Initialize with a sharing repository."""
        self._repo = repo

    async def create_share(self, resource_id: UUID, target: ShareTarget) -> ResourceShare:
        """Grant a user or group access to a resource.

        The target must exist in the table named by its kind. There is no
        database constraint tying ``target_id`` to a table, so it is checked
        here before the insert.

        Args:
            resource_id: Resource to share.
            target: User or group receiving the grant.

        Returns:
            The created share.

        Raises:
            NotFoundError: If the resource or target does not exist.
            ValidationError: If the resource is global.
            ShareAlreadyExistsError: If the same grant already exists.
        """
        resource = await self._repo.get_resource(resource_id)
        if resource is None:
            raise NotFoundError("Resource", resource_id)

        if resource.is_global:
            raise ValidationError("resource_id", "global resources cannot be shared")

        if target.kind is ShareType.USER:
            if await self._repo.get_user(target.id) is None:
                raise NotFoundError("User", target.id)
        elif await self._repo.get_group(target.id) is None:
            raise NotFoundError("Group", target.id)

        share = await self._repo.create_share(resource_id, target)
        logger.info(
            "share_created",
            share_id=str(share.id),
            resource_id=str(resource_id),
            share_type=target.kind.value,
            target_id=str(target.id),
        )
        return share

    async def revoke_share(self, resource_id: UUID, share_id: UUID) -> None:
        """Remove a share from a resource.

        Raises:
            NotFoundError: If the share does not exist on this resource.
        """
        share = await self._repo.get_share(share_id)
        if share is None or share.resource_id != resource_id:
            raise NotFoundError("Share", share_id)

        await self._repo.delete_share(share_id)
        logger.info("share_revoked", share_id=str(share_id), resource_id=str(resource_id))

    async def list_shares(self, resource_id: UUID) -> list[ResourceShare]:
        """List the shares on a resource.

        Raises:
            NotFoundError: If the resource does not exist.
        """
        if await self._repo.get_resource(resource_id) is None:
            raise NotFoundError("Resource", resource_id)
        return await self._repo.list_resource_shares(resource_id)
