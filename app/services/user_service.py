"""User service - user records and their applications."""

from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.persistence.executor import UNIQUE_VIOLATION, integrity_sqlstate
from app.persistence.user_repository import UserRepository

logger = structlog.get_logger(__name__)

ADMIN_ONLY_FIELDS = frozenset({"isAdmin"})


class UserService:
    """Service for managing users."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_repo = UserRepository(session)

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        username = data["username"]
        if await self.user_repo.exists(username):
            raise ConflictError(f"Duplicate username: {username}")

        try:
            user = await self.user_repo.create(data)
        except IntegrityError as exc:
            if integrity_sqlstate(exc) == UNIQUE_VIOLATION:
                raise ConflictError(f"Duplicate username: {username}") from exc
            raise

        logger.info("User created", username=username, is_admin=user["isAdmin"])
        return user

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        return await self.user_repo.find_all(filters)

    async def get(self, username: str) -> dict[str, Any]:
        """Get a user with the ids of jobs they applied to."""
        user = await self.user_repo.get(username)
        if user is None:
            raise NotFoundError(f"No user: {username}")
        user["applications"] = await self.user_repo.list_applied_job_ids(username)
        return user

    async def update(
        self,
        username: str,
        data: Mapping[str, Any],
        *,
        allow_admin_fields: bool = False,
    ) -> dict[str, Any]:
        """Partial update. Only admins may change `isAdmin`."""
        if not allow_admin_fields and ADMIN_ONLY_FIELDS & data.keys():
            raise ForbiddenError(
                "Only admins may change admin status",
                details={"fields": sorted(ADMIN_ONLY_FIELDS & data.keys())},
            )
        user = await self.user_repo.update(username, data)
        if user is None:
            raise NotFoundError(f"No user: {username}")
        logger.info("User updated", username=username, fields=list(data))
        return user

    async def remove(self, username: str) -> None:
        if not await self.user_repo.remove(username):
            raise NotFoundError(f"No user: {username}")
        logger.info("User removed", username=username)
