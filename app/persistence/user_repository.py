"""User repository for the users table."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.executor import SqlExecutor
from app.persistence.query_builder import (
    FilterKind,
    FilterRule,
    build_partial_update,
    compose_filters,
)

USER_COLUMNS: dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "isAdmin": "is_admin",
}

USER_FILTERS: tuple[FilterRule, ...] = (
    FilterRule("username", FilterKind.PARTIAL_CI_MATCH, "username"),
    FilterRule("email", FilterKind.PARTIAL_CI_MATCH, "email"),
    FilterRule("isAdmin", FilterKind.PRESENCE_BOOL, "is_admin", operator="=", value=True),
)

_USER_FIELDS = (
    'username, first_name AS "firstName", last_name AS "lastName", email, is_admin AS "isAdmin"'
)


class UserRepository:
    """CRUD operations for users."""

    def __init__(self, session: AsyncSession) -> None:
        self._db = SqlExecutor(session)

    async def exists(self, username: str) -> bool:
        row = await self._db.fetch_one(
            "SELECT username FROM users WHERE username = $1",
            [username],
            query_name="users_exists",
        )
        return row is not None

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        rows = await self._db.fetch_all(
            f"""
            INSERT INTO users (username, first_name, last_name, email, is_admin)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING {_USER_FIELDS}
            """,
            [
                data["username"],
                data["firstName"],
                data["lastName"],
                data["email"],
                data.get("isAdmin", False),
            ],
            query_name="users_create",
        )
        return rows[0]

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        where = compose_filters(filters, USER_FILTERS)
        return await self._db.fetch_all(
            f"""
            SELECT {_USER_FIELDS}
            FROM users
            {where.where_clause()}
            ORDER BY username
            """,
            where.params,
            query_name="users_find_all",
        )

    async def get(self, username: str) -> dict[str, Any] | None:
        return await self._db.fetch_one(
            f"SELECT {_USER_FIELDS} FROM users WHERE username = $1",
            [username],
            query_name="users_get",
        )

    async def list_applied_job_ids(self, username: str) -> list[int]:
        rows = await self._db.fetch_all(
            "SELECT job_id FROM applications WHERE username = $1 ORDER BY job_id",
            [username],
            query_name="users_applied_jobs",
        )
        return [row["job_id"] for row in rows]

    async def update(self, username: str, data: Mapping[str, Any]) -> dict[str, Any] | None:
        """Partial update; returns None when the user does not exist."""
        fragment = build_partial_update(data, USER_COLUMNS)
        return await self._db.fetch_one(
            f"""
            UPDATE users
            SET {fragment.text}
            WHERE username = ${fragment.next_placeholder}
            RETURNING {_USER_FIELDS}
            """,
            [*fragment.params, username],
            query_name="users_update",
        )

    async def remove(self, username: str) -> bool:
        row = await self._db.fetch_one(
            "DELETE FROM users WHERE username = $1 RETURNING username",
            [username],
            query_name="users_remove",
        )
        return row is not None
