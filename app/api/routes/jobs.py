"""Job routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.auth import RequireAdmin
from app.schemas.v1.common import DeletedResponse
from app.schemas.v1.jobs import JobCreateRequest, JobListResponse, JobResponse, JobUpdateRequest
from app.services.job_service import JobService

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    request: JobCreateRequest,
    user: RequireAdmin,
    session: AsyncSession = Depends(get_session),
):
    """Create a job for an existing company."""
    job = await JobService(session).create(request.model_dump(by_alias=True))
    return JobResponse(job=job)


@router.get("", response_model=JobListResponse)
async def list_jobs(
    session: AsyncSession = Depends(get_session),
    title: str | None = Query(None),
    min_salary: str | None = Query(None, alias="minSalary"),
    has_equity: str | None = Query(None, alias="hasEquity"),
):
    """List jobs filtered by title (partial, case-insensitive), minSalary and hasEquity."""
    jobs = await JobService(session).find_all(
        {"title": title, "minSalary": min_salary, "hasEquity": has_equity}
    )
    return JobListResponse(jobs=jobs)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: int, session: AsyncSession = Depends(get_session)):
    job = await JobService(session).get(job_id)
    return JobResponse(job=job)


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    request: JobUpdateRequest,
    user: RequireAdmin,
    session: AsyncSession = Depends(get_session),
):
    """Partially update a job. The owning company cannot be changed."""
    job = await JobService(session).update(job_id, request.changes())
    return JobResponse(job=job)


@router.delete("/{job_id}", response_model=DeletedResponse)
async def delete_job(
    job_id: int,
    user: RequireAdmin,
    session: AsyncSession = Depends(get_session),
):
    await JobService(session).remove(job_id)
    return DeletedResponse(deleted=str(job_id))
