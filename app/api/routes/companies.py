"""Company routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.auth import RequireAdmin
from app.schemas.v1.common import DeletedResponse
from app.schemas.v1.companies import (
    CompanyCreateRequest,
    CompanyDetailResponse,
    CompanyListResponse,
    CompanyResponse,
    CompanyUpdateRequest,
)
from app.services.company_service import CompanyService

router = APIRouter(prefix="/companies", tags=["companies"])


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    request: CompanyCreateRequest,
    user: RequireAdmin,
    session: AsyncSession = Depends(get_session),
):
    """Create a company."""
    company = await CompanyService(session).create(request.model_dump(by_alias=True))
    return CompanyResponse(company=company)


@router.get("", response_model=CompanyListResponse)
async def list_companies(
    session: AsyncSession = Depends(get_session),
    name: str | None = Query(None),
    min_employees: str | None = Query(None, alias="minEmployees"),
    max_employees: str | None = Query(None, alias="maxEmployees"),
):
    """List companies, optionally filtered by name and employee range.

    Unparseable numeric filters are ignored rather than rejected.
    """
    companies = await CompanyService(session).find_all(
        {"name": name, "minEmployees": min_employees, "maxEmployees": max_employees}
    )
    return CompanyListResponse(companies=companies)


@router.get("/{handle}", response_model=CompanyDetailResponse)
async def get_company(handle: str, session: AsyncSession = Depends(get_session)):
    """Get a company and its jobs."""
    company = await CompanyService(session).get(handle)
    return CompanyDetailResponse(company=company)


@router.patch("/{handle}", response_model=CompanyResponse)
async def update_company(
    handle: str,
    request: CompanyUpdateRequest,
    user: RequireAdmin,
    session: AsyncSession = Depends(get_session),
):
    company = await CompanyService(session).update(handle, request.changes())
    return CompanyResponse(company=company)


@router.delete("/{handle}", response_model=DeletedResponse)
async def delete_company(
    handle: str,
    user: RequireAdmin,
    session: AsyncSession = Depends(get_session),
):
    await CompanyService(session).remove(handle)
    return DeletedResponse(deleted=handle)
