"""Root conftest for tests."""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

if os.getenv("APP_ENV", "").strip().lower() == "prod":
    raise RuntimeError("Refusing to run tests with APP_ENV=prod")

os.environ["APP_ENV"] = "local"
os.environ["SECURITY_SKIP_JWT_VALIDATION"] = "true"
os.environ.setdefault("SERVER_PORT", "3001")
os.environ.setdefault("METRICS_TOKEN", "test-metrics-token")


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    dir_marker_map = {
        "unit": pytest.mark.unit,
        "smoke": pytest.mark.smoke,
    }
    for item in items:
        test_path = str(item.fspath)
        for dir_name, marker in dir_marker_map.items():
            if f"/{dir_name}/" in test_path or f"\\{dir_name}\\" in test_path:
                item.add_marker(marker)
                break


def _make_row(**columns):
    row = MagicMock()
    row._mapping = columns
    return row


def _make_result(rows=()):
    result = MagicMock()
    rows = list(rows)
    result.fetchall.return_value = rows
    result.fetchone.return_value = rows[0] if rows else None
    return result


@pytest.fixture
def make_row():
    """Build fake SQLAlchemy rows exposing `_mapping`."""
    return _make_row


@pytest.fixture
def make_result():
    """Build fake results whose fetchall/fetchone return the given rows."""
    return _make_result


@pytest.fixture
def mock_session():
    """AsyncSession mock whose `execute` returns no rows by default."""
    session = AsyncMock()
    session.execute.return_value = _make_result()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    return session


@pytest.fixture
def executed_sql():
    """Return (sql, params) for one `session.execute` call."""

    def _executed(session, call_index: int = -1) -> tuple[str, dict]:
        statement, params = session.execute.call_args_list[call_index].args
        return str(statement), params

    return _executed
