"""Application service - a user applying to a job."""

from typing import Any

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, NotFoundError
from app.core.metrics import jobly_applications_total
from app.persistence.application_repository import ApplicationRepository
from app.persistence.executor import (
    FOREIGN_KEY_VIOLATION,
    UNIQUE_VIOLATION,
    integrity_sqlstate,
)
from app.persistence.job_repository import JobRepository
from app.persistence.user_repository import UserRepository

logger = structlog.get_logger(__name__)


class ApplicationService:
    """Creates applications after checking the pair and both referenced rows."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.application_repo = ApplicationRepository(session)
        self.user_repo = UserRepository(session)
        self.job_repo = JobRepository(session)

    async def apply(self, username: str, job_id: int) -> dict[str, Any]:
        """Record that `username` applied to `job_id`.

        Checks run in a fixed order: duplicate pair first, then user, then
        job. A repeated application for a missing job is reported as a
        conflict, not as not-found.

        Raises:
            ConflictError: the application already exists.
            NotFoundError: the user or the job does not exist.
        """
        if await self.application_repo.exists(username, job_id):
            jobly_applications_total.labels(outcome="duplicate").inc()
            raise ConflictError(
                f"Duplicate application: {username}",
                details={"username": username, "jobId": job_id},
            )

        if not await self.user_repo.exists(username):
            jobly_applications_total.labels(outcome="not_found").inc()
            raise NotFoundError(f"No such user: {username}", details={"entity": "user"})

        if not await self.job_repo.exists(job_id):
            jobly_applications_total.labels(outcome="not_found").inc()
            raise NotFoundError(f"No such job: {job_id}", details={"entity": "job"})

        # The primary key on (username, job_id) and the foreign keys decide
        # races between the probes above and this insert.
        try:
            application = await self.application_repo.create(username, job_id)
        except IntegrityError as exc:
            sqlstate = integrity_sqlstate(exc)
            if sqlstate == UNIQUE_VIOLATION:
                jobly_applications_total.labels(outcome="duplicate").inc()
                raise ConflictError(
                    f"Duplicate application: {username}",
                    details={"username": username, "jobId": job_id},
                ) from exc
            if sqlstate == FOREIGN_KEY_VIOLATION:
                jobly_applications_total.labels(outcome="not_found").inc()
                raise NotFoundError(
                    f"No such user or job: {username}/{job_id}",
                ) from exc
            raise

        jobly_applications_total.labels(outcome="created").inc()
        logger.info("Application created", username=username, job_id=job_id)
        return application
