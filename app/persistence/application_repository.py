"""Application repository for the applications association table."""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.persistence.executor import SqlExecutor


class ApplicationRepository:
    """Probe and insert (username, job_id) pairs."""

    def __init__(self, session: AsyncSession) -> None:
        self._db = SqlExecutor(session)

    async def exists(self, username: str, job_id: int) -> bool:
        row = await self._db.fetch_one(
            "SELECT job_id FROM applications WHERE username = $1 AND job_id = $2",
            [username, job_id],
            query_name="applications_exists",
        )
        return row is not None

    async def create(self, username: str, job_id: int) -> dict[str, Any]:
        rows = await self._db.fetch_all(
            """
            INSERT INTO applications (username, job_id)
            VALUES ($1, $2)
            RETURNING username, job_id AS "jobId"
            """,
            [username, job_id],
            query_name="applications_create",
        )
        return rows[0]
