"""Unit tests for the job application protocol."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.errors import ConflictError, NotFoundError
from app.persistence.executor import FOREIGN_KEY_VIOLATION, UNIQUE_VIOLATION
from app.services.application_service import ApplicationService


def _service(*, duplicate=False, user_exists=True, job_exists=True):
    service = ApplicationService(AsyncMock())
    calls = MagicMock()

    service.application_repo.exists = AsyncMock(return_value=duplicate)
    service.user_repo.exists = AsyncMock(return_value=user_exists)
    service.job_repo.exists = AsyncMock(return_value=job_exists)
    service.application_repo.create = AsyncMock(return_value={"username": "u1", "jobId": 5})

    calls.attach_mock(service.application_repo.exists, "application_exists")
    calls.attach_mock(service.user_repo.exists, "user_exists")
    calls.attach_mock(service.job_repo.exists, "job_exists")
    calls.attach_mock(service.application_repo.create, "create")
    return service, calls


@pytest.mark.asyncio
async def test_apply_creates_application():
    service, calls = _service()

    result = await service.apply("u1", 5)

    assert result == {"username": "u1", "jobId": 5}
    assert [c[0] for c in calls.mock_calls] == [
        "application_exists",
        "user_exists",
        "job_exists",
        "create",
    ]
    service.application_repo.create.assert_awaited_once_with("u1", 5)


@pytest.mark.asyncio
async def test_apply_duplicate_is_conflict():
    service, _ = _service(duplicate=True)

    with pytest.raises(ConflictError) as exc_info:
        await service.apply("u1", 5)

    assert exc_info.value.status_code == 409
    service.user_repo.exists.assert_not_called()
    service.application_repo.create.assert_not_called()


@pytest.mark.asyncio
async def test_apply_duplicate_checked_before_missing_job():
    service, _ = _service(duplicate=True, job_exists=False)

    with pytest.raises(ConflictError):
        await service.apply("u1", 5)

    service.job_repo.exists.assert_not_called()


@pytest.mark.asyncio
async def test_apply_missing_user():
    service, _ = _service(user_exists=False)

    with pytest.raises(NotFoundError) as exc_info:
        await service.apply("ghost", 5)

    assert exc_info.value.message == "No such user: ghost"
    service.job_repo.exists.assert_not_called()
    service.application_repo.create.assert_not_called()


@pytest.mark.asyncio
async def test_apply_missing_job():
    service, _ = _service(job_exists=False)

    with pytest.raises(NotFoundError) as exc_info:
        await service.apply("u1", 0)

    assert exc_info.value.message == "No such job: 0"
    service.application_repo.create.assert_not_called()


@pytest.mark.asyncio
async def test_apply_unique_violation_on_insert_is_conflict():
    service, _ = _service()
    service.application_repo.create.side_effect = IntegrityError(
        "INSERT", {}, SimpleNamespace(sqlstate=UNIQUE_VIOLATION)
    )

    with pytest.raises(ConflictError):
        await service.apply("u1", 5)


@pytest.mark.asyncio
async def test_apply_fk_violation_on_insert_is_not_found():
    service, _ = _service()
    service.application_repo.create.side_effect = IntegrityError(
        "INSERT", {}, SimpleNamespace(sqlstate=FOREIGN_KEY_VIOLATION)
    )

    with pytest.raises(NotFoundError):
        await service.apply("u1", 5)


@pytest.mark.asyncio
async def test_apply_other_integrity_errors_propagate():
    service, _ = _service()
    service.application_repo.create.side_effect = IntegrityError(
        "INSERT", {}, SimpleNamespace(sqlstate="23514")
    )

    with pytest.raises(IntegrityError):
        await service.apply("u1", 5)
