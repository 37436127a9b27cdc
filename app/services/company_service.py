"""Company service - company CRUD and search."""

from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.persistence.company_repository import CompanyRepository
from app.persistence.executor import UNIQUE_VIOLATION, integrity_sqlstate
from app.persistence.job_repository import JobRepository
from app.persistence.query_builder import coerce_number

logger = structlog.get_logger(__name__)


class CompanyService:
    """Service for managing companies."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.company_repo = CompanyRepository(session)
        self.job_repo = JobRepository(session)

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        handle = data["handle"]
        if await self.company_repo.exists(handle):
            raise ConflictError(f"Duplicate company: {handle}")

        try:
            company = await self.company_repo.create(data)
        except IntegrityError as exc:
            if integrity_sqlstate(exc) == UNIQUE_VIOLATION:
                raise ConflictError(f"Duplicate company: {handle}") from exc
            raise

        logger.info("Company created", handle=handle)
        return company

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Search companies.

        Filters are best-effort; only an inverted employee range is rejected.
        """
        filters = filters or {}
        min_employees = coerce_number(filters.get("minEmployees"))
        max_employees = coerce_number(filters.get("maxEmployees"))
        if min_employees is not None and max_employees is not None:
            if min_employees > max_employees:
                raise ValidationError(
                    "minEmployees cannot be greater than maxEmployees",
                    details={"minEmployees": min_employees, "maxEmployees": max_employees},
                )
        return await self.company_repo.find_all(filters)

    async def get(self, handle: str) -> dict[str, Any]:
        """Get a company with its jobs."""
        company = await self.company_repo.get(handle)
        if company is None:
            raise NotFoundError(f"No company: {handle}")
        company["jobs"] = await self.job_repo.find_by_company(handle)
        return company

    async def update(self, handle: str, data: Mapping[str, Any]) -> dict[str, Any]:
        try:
            company = await self.company_repo.update(handle, data)
        except IntegrityError as exc:
            if integrity_sqlstate(exc) == UNIQUE_VIOLATION:
                raise ConflictError(f"Company name already in use: {data.get('name')}") from exc
            raise
        if company is None:
            raise NotFoundError(f"No company: {handle}")
        logger.info("Company updated", handle=handle, fields=list(data))
        return company

    async def remove(self, handle: str) -> None:
        if not await self.company_repo.remove(handle):
            raise NotFoundError(f"No company: {handle}")
        logger.info("Company removed", handle=handle)
