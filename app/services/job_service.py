"""Job service - job CRUD and search."""

from collections.abc import Mapping
from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError
from app.persistence.company_repository import CompanyRepository
from app.persistence.executor import FOREIGN_KEY_VIOLATION, integrity_sqlstate
from app.persistence.job_repository import JobRepository

logger = structlog.get_logger(__name__)


class JobService:
    """Service for managing jobs."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.job_repo = JobRepository(session)
        self.company_repo = CompanyRepository(session)

    async def create(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Create a job for an existing company; titles must be unique."""
        title = data["title"]
        if await self.job_repo.exists_by_title(title):
            raise ConflictError(f"Duplicate job: {title}")

        company_handle = data["companyHandle"]
        if not await self.company_repo.exists(company_handle):
            raise NotFoundError(f"No such company: {company_handle}")

        try:
            job = await self.job_repo.create(data)
        except IntegrityError as exc:
            if integrity_sqlstate(exc) == FOREIGN_KEY_VIOLATION:
                raise NotFoundError(f"No such company: {company_handle}") from exc
            raise

        logger.info("Job created", job_id=job["id"], company_handle=company_handle)
        return job

    async def find_all(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        return await self.job_repo.find_all(filters)

    async def get(self, job_id: int) -> dict[str, Any]:
        job = await self.job_repo.get(job_id)
        if job is None:
            raise NotFoundError(f"No job: {job_id}")
        return job

    async def update(self, job_id: int, data: Mapping[str, Any]) -> dict[str, Any]:
        job = await self.job_repo.update(job_id, data)
        if job is None:
            raise NotFoundError(f"No job: {job_id}")
        logger.info("Job updated", job_id=job_id, fields=list(data))
        return job

    async def remove(self, job_id: int) -> None:
        if not await self.job_repo.remove(job_id):
            raise NotFoundError(f"No job: {job_id}")
        logger.info("Job removed", job_id=job_id)
