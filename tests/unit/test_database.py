"""Unit tests for database module."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core.config import DatabaseConfig
from app.core.database import (
    create_async_engine,
    create_session_factory,
    get_session,
    reset_engine,
)


def _config() -> DatabaseConfig:
    return DatabaseConfig(
        host="localhost",
        port=5432,
        name="test_db",
        user="test_user",
    )


def test_create_async_engine_uses_psycopg():
    engine = create_async_engine(_config())
    assert engine.url.drivername == "postgresql+psycopg"
    assert engine.url.database == "test_db"


def test_create_session_factory():
    engine = create_async_engine(_config())
    factory = create_session_factory(engine)
    assert factory is not None


def _factory_for(session):
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


@pytest.mark.asyncio
async def test_get_session_commits_on_success(mock_session):
    with patch("app.core.database.get_session_factory", return_value=_factory_for(mock_session)):
        session_gen = get_session()
        assert await session_gen.__anext__() is mock_session
        with pytest.raises(StopAsyncIteration):
            await session_gen.__anext__()

    mock_session.commit.assert_awaited_once()
    mock_session.rollback.assert_not_called()


@pytest.mark.asyncio
async def test_get_session_rolls_back_on_error(mock_session):
    with patch("app.core.database.get_session_factory", return_value=_factory_for(mock_session)):
        session_gen = get_session()
        await session_gen.__anext__()
        with pytest.raises(RuntimeError):
            await session_gen.athrow(RuntimeError("boom"))

    mock_session.rollback.assert_awaited_once()
    mock_session.commit.assert_not_called()


@pytest.mark.asyncio
async def test_reset_engine():
    with patch("app.core.database._engine") as mock_engine:
        with patch("app.core.database._session_factory"):
            mock_engine.dispose = AsyncMock()
            await reset_engine()
            mock_engine.dispose.assert_called_once()
