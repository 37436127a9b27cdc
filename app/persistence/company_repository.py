"""Company repository for the companies table."""

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

COMPANY_COLUMNS: dict[str, str] = {
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}

COMPANY_FILTERS: tuple[FilterRule, ...] = (
    FilterRule("name", FilterKind.PARTIAL_CI_MATCH, "name"),
    FilterRule("minEmployees", FilterKind.GTE_NUMERIC, "num_employees"),
    FilterRule("maxEmployees", FilterKind.LTE_NUMERIC, "num_employees"),
)

_COMPANY_FIELDS = (
    'handle, name, description, num_employees AS "numEmployees", logo_url AS "logoUrl"'
)


class CompanyRepository:
    """CRUD operations for companies."""

    def __init__(self, session: AsyncSession) -> None:
        self._db = SqlExecutor(session)

    async def exists(self, handle: str) -> bool:
        row = await self._db.fetch_one(
            "SELECT handle FROM companies WHERE handle = $1",
            [handle],
            query_name="companies_exists",
        )
        return row is not None

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Insert a company. Unique violations propagate as IntegrityError."""
        rows = await self._db.fetch_all(
            f"""
            INSERT INTO companies (handle, name, description, num_employees, logo_url)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING {_COMPANY_FIELDS}
            """,
            [
                data["handle"],
                data["name"],
                data.get("description"),
                data.get("numEmployees"),
                data.get("logoUrl"),
            ],
            query_name="companies_create",
        )
        return rows[0]

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """List companies matching optional `name`/`minEmployees`/`maxEmployees`."""
        where = compose_filters(filters, COMPANY_FILTERS)
        return await self._db.fetch_all(
            f"""
            SELECT {_COMPANY_FIELDS}
            FROM companies
            {where.where_clause()}
            ORDER BY name
            """,
            where.params,
            query_name="companies_find_all",
        )

    async def get(self, handle: str) -> dict[str, Any] | None:
        return await self._db.fetch_one(
            f"SELECT {_COMPANY_FIELDS} FROM companies WHERE handle = $1",
            [handle],
            query_name="companies_get",
        )

    async def update(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any] | None:
        """Partial update; returns None when the company does not exist."""
        fragment = build_partial_update(data, COMPANY_COLUMNS)
        return await self._db.fetch_one(
            f"""
            UPDATE companies
            SET {fragment.text}
            WHERE handle = ${fragment.next_placeholder}
            RETURNING {_COMPANY_FIELDS}
            """,
            [*fragment.params, handle],
            query_name="companies_update",
        )

    async def remove(self, handle: str) -> bool:
        row = await self._db.fetch_one(
            "DELETE FROM companies WHERE handle = $1 RETURNING handle",
            [handle],
            query_name="companies_remove",
        )
        return row is not None
