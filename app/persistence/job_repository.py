"""Job repository for the jobs table."""

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

JOB_COLUMNS: dict[str, str] = {
    "companyHandle": "company_handle",
}

JOB_FILTERS: tuple[FilterRule, ...] = (
    FilterRule("title", FilterKind.PARTIAL_CI_MATCH, "title"),
    FilterRule("minSalary", FilterKind.GTE_NUMERIC, "salary"),
    FilterRule("hasEquity", FilterKind.PRESENCE_BOOL, "equity", operator=">", value=0),
)

_JOB_FIELDS = 'id, title, salary, equity, company_handle AS "companyHandle"'


class JobRepository:
    """CRUD operations for jobs."""

    def __init__(self, session: AsyncSession) -> None:
        self._db = SqlExecutor(session)

    async def exists(self, job_id: int) -> bool:
        row = await self._db.fetch_one(
            "SELECT id FROM jobs WHERE id = $1",
            [job_id],
            query_name="jobs_exists",
        )
        return row is not None

    async def exists_by_title(self, title: str) -> bool:
        row = await self._db.fetch_one(
            "SELECT id FROM jobs WHERE title = $1 LIMIT 1",
            [title],
            query_name="jobs_exists_by_title",
        )
        return row is not None

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        rows = await self._db.fetch_all(
            f"""
            INSERT INTO jobs (title, salary, equity, company_handle)
            VALUES ($1, $2, $3, $4)
            RETURNING {_JOB_FIELDS}
            """,
            [
                data["title"],
                data.get("salary"),
                data.get("equity"),
                data["companyHandle"],
            ],
            query_name="jobs_create",
        )
        return rows[0]

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """List jobs matching optional `title`/`minSalary`/`hasEquity`, ordered by title."""
        where = compose_filters(filters, JOB_FILTERS)
        return await self._db.fetch_all(
            f"""
            SELECT {_JOB_FIELDS}
            FROM jobs
            {where.where_clause()}
            ORDER BY title
            """,
            where.params,
            query_name="jobs_find_all",
        )

    async def find_by_company(self, company_handle: str) -> list[dict[str, Any]]:
        return await self._db.fetch_all(
            """
            SELECT id, title, salary, equity
            FROM jobs
            WHERE company_handle = $1
            ORDER BY id
            """,
            [company_handle],
            query_name="jobs_find_by_company",
        )

    async def get(self, job_id: int) -> dict[str, Any] | None:
        return await self._db.fetch_one(
            f"SELECT {_JOB_FIELDS} FROM jobs WHERE id = $1",
            [job_id],
            query_name="jobs_get",
        )

    async def update(self, job_id: int, data: Mapping[str, Any]) -> dict[str, Any] | None:
        """Partial update; returns None when the job does not exist."""
        fragment = build_partial_update(data, JOB_COLUMNS)
        return await self._db.fetch_one(
            f"""
            UPDATE jobs
            SET {fragment.text}
            WHERE id = ${fragment.next_placeholder}
            RETURNING {_JOB_FIELDS}
            """,
            [*fragment.params, job_id],
            query_name="jobs_update",
        )

    async def remove(self, job_id: int) -> bool:
        row = await self._db.fetch_one(
            "DELETE FROM jobs WHERE id = $1 RETURNING id",
            [job_id],
            query_name="jobs_remove",
        )
        return row is not None
