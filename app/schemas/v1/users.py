"""User schemas."""

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.v1.common import CamelModel, PartialUpdate

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserCreateRequest(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    username: str = Field(min_length=1, max_length=25)
    first_name: str = Field(min_length=1, max_length=30)
    last_name: str = Field(min_length=1, max_length=30)
    email: str = Field(min_length=6, max_length=60, pattern=EMAIL_PATTERN)
    is_admin: bool = False


class UserUpdateRequest(PartialUpdate):
    non_nullable = frozenset({"firstName", "lastName", "email", "isAdmin"})

    first_name: str | None = Field(default=None, min_length=1, max_length=30)
    last_name: str | None = Field(default=None, min_length=1, max_length=30)
    email: str | None = Field(default=None, min_length=6, max_length=60, pattern=EMAIL_PATTERN)
    is_admin: bool | None = None


class User(CamelModel):
    username: str
    first_name: str
    last_name: str
    email: str
    is_admin: bool = False


class UserDetail(User):
    applications: list[int] = []


class UserResponse(CamelModel):
    user: User


class UserDetailResponse(CamelModel):
    user: UserDetail


class UserListResponse(CamelModel):
    users: list[User]


class AppliedResponse(CamelModel):
    applied: int
