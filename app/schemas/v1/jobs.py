"""Job schemas."""

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.v1.common import CamelModel, PartialUpdate


class JobCreateRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str = Field(min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: float | None = Field(default=None, ge=0, le=1)
    company_handle: str = Field(min_length=1, max_length=25)


class JobUpdateRequest(PartialUpdate):
    non_nullable = frozenset({"title"})

    title: str | None = Field(default=None, min_length=1)
    salary: int | None = Field(default=None, ge=0)
    equity: float | None = Field(default=None, ge=0, le=1)


class JobSummary(CamelModel):
    id: int
    title: str
    salary: int | None = None
    equity: float | None = None


class Job(JobSummary):
    company_handle: str


class JobResponse(CamelModel):
    job: Job


class JobListResponse(CamelModel):
    jobs: list[Job]
