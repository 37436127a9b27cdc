"""Execution of `$n`-style SQL through an AsyncSession."""

from __future__ import annotations

import re
import time
from collections.abc import Sequence
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.metrics import jobly_db_query_failures_total, jobly_db_query_latency_seconds
from app.persistence.base import row_to_dict

logger = structlog.get_logger(__name__)

_POSITIONAL_PLACEHOLDER = re.compile(r"\$(\d+)")

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def bind_positional(sql: str, params: Sequence[Any]) -> tuple[str, dict[str, Any]]:
    """Rewrite `$n` placeholders to SQLAlchemy named binds (`:p<n>`).

    Raises ValueError if the text references a placeholder that has no
    parameter.
    """
    bound = {f"p{i}": value for i, value in enumerate(params, start=1)}

    def _replace(match: re.Match[str]) -> str:
        name = f"p{match.group(1)}"
        if name not in bound:
            raise ValueError(
                f"SQL references ${match.group(1)} but only {len(params)} params given"
            )
        return f":{name}"

    return _POSITIONAL_PLACEHOLDER.sub(_replace, sql), bound


class SqlExecutor:
    """Runs positional-parameter SQL and returns rows as dicts.

    Constraint violations (`sqlalchemy.exc.IntegrityError`) propagate
    unchanged so callers can tell them apart from an empty result.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def _run(self, sql: str, params: Sequence[Any], query_name: str):
        statement, bound = bind_positional(sql, params)
        started = time.perf_counter()
        try:
            result = await self._session.execute(text(statement), bound)
        except SQLAlchemyError as exc:
            jobly_db_query_failures_total.labels(query_name=query_name).inc()
            logger.warning("Query failed", query_name=query_name, error=str(exc))
            raise
        jobly_db_query_latency_seconds.labels(query_name=query_name).observe(
            time.perf_counter() - started
        )
        return result

    async def fetch_all(
        self, sql: str, params: Sequence[Any] = (), *, query_name: str = "unnamed"
    ) -> list[dict[str, Any]]:
        result = await self._run(sql, params, query_name)
        return [row_to_dict(row) for row in result.fetchall()]

    async def fetch_one(
        self, sql: str, params: Sequence[Any] = (), *, query_name: str = "unnamed"
    ) -> dict[str, Any] | None:
        result = await self._run(sql, params, query_name)
        row = result.fetchone()
        return row_to_dict(row) if row is not None else None


def integrity_sqlstate(exc: IntegrityError) -> str | None:
    """SQLSTATE of the driver error wrapped by an IntegrityError, if known."""
    orig = getattr(exc, "orig", None)
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
