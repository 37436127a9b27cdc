"""Company schemas."""

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.v1.common import CamelModel, PartialUpdate
from app.schemas.v1.jobs import JobSummary


class CompanyCreateRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    handle: str = Field(min_length=1, max_length=25)
    name: str = Field(min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = None


class CompanyUpdateRequest(PartialUpdate):
    non_nullable = frozenset({"name"})

    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    num_employees: int | None = Field(default=None, ge=0)
    logo_url: str | None = None


class Company(CamelModel):
    handle: str
    name: str
    description: str | None = None
    num_employees: int | None = None
    logo_url: str | None = None


class CompanyDetail(Company):
    jobs: list[JobSummary] = []


class CompanyResponse(CamelModel):
    company: Company


class CompanyDetailResponse(CamelModel):
    company: CompanyDetail


class CompanyListResponse(CamelModel):
    companies: list[Company]
