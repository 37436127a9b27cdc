"""User routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.auth import RequireAdmin, RequireAdminOrSameUser
from app.schemas.v1.common import DeletedResponse
from app.schemas.v1.users import (
    AppliedResponse,
    UserCreateRequest,
    UserDetailResponse,
    UserListResponse,
    UserResponse,
    UserUpdateRequest,
)
from app.services.application_service import ApplicationService
from app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    request: UserCreateRequest,
    user: RequireAdmin,
    session: AsyncSession = Depends(get_session),
):
    """Add a user record. Admins only; the new user may itself be an admin."""
    created = await UserService(session).create(request.model_dump(by_alias=True))
    return UserResponse(user=created)


@router.get("", response_model=UserListResponse)
async def list_users(
    user: RequireAdmin,
    session: AsyncSession = Depends(get_session),
    username: str | None = Query(None),
    email: str | None = Query(None),
    is_admin: str | None = Query(None, alias="isAdmin"),
):
    users = await UserService(session).find_all(
        {"username": username, "email": email, "isAdmin": is_admin}
    )
    return UserListResponse(users=users)


@router.get("/{username}", response_model=UserDetailResponse)
async def get_user(
    username: str,
    user: RequireAdminOrSameUser,
    session: AsyncSession = Depends(get_session),
):
    """Get a user and the ids of jobs they applied to."""
    found = await UserService(session).get(username)
    return UserDetailResponse(user=found)


@router.patch("/{username}", response_model=UserResponse)
async def update_user(
    username: str,
    request: UserUpdateRequest,
    user: RequireAdminOrSameUser,
    session: AsyncSession = Depends(get_session),
):
    updated = await UserService(session).update(
        username,
        request.changes(),
        allow_admin_fields=user.is_admin,
    )
    return UserResponse(user=updated)


@router.delete("/{username}", response_model=DeletedResponse)
async def delete_user(
    username: str,
    user: RequireAdminOrSameUser,
    session: AsyncSession = Depends(get_session),
):
    await UserService(session).remove(username)
    return DeletedResponse(deleted=username)


@router.post("/{username}/jobs/{job_id}", response_model=AppliedResponse)
async def apply_to_job(
    username: str,
    job_id: int,
    user: RequireAdminOrSameUser,
    session: AsyncSession = Depends(get_session),
):
    """Apply `username` to a job."""
    application = await ApplicationService(session).apply(username, job_id)
    return AppliedResponse(applied=application["jobId"])
