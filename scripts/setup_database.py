"""Apply the SQL migrations in db/migrations to the configured database.

Migrations are idempotent (CREATE ... IF NOT EXISTS) and run in file-name
order, each file in its own transaction.
"""

import asyncio
import sys
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent.parent / "db" / "migrations"


def _extract_statements(sql: str) -> list[str]:
    """Split SQL on ';' and strip comment-only chunks, returning executable statements."""
    statements = []
    for chunk in sql.split(";"):
        sql_lines = [line for line in chunk.splitlines() if not line.strip().startswith("--")]
        stmt = "\n".join(sql_lines).strip()
        if stmt:
            statements.append(stmt)
    return statements


async def setup(migrations_dir: Path = MIGRATIONS_DIR) -> int:
    """Run every migration file; returns the number of files applied."""
    from sqlalchemy import text
    from sqlalchemy.ext.asyncio import create_async_engine

    from app.core.config import get_settings

    settings = get_settings()
    engine = create_async_engine(settings.database.admin_url)

    migration_files = sorted(migrations_dir.glob("*.sql"))
    try:
        for migration_file in migration_files:
            logger.info("Running migration", file=migration_file.name)
            async with engine.begin() as conn:
                for statement in _extract_statements(migration_file.read_text()):
                    await conn.execute(text(statement))
    finally:
        await engine.dispose()

    logger.info("Database setup complete", migrations=len(migration_files))
    return len(migration_files)


def main() -> None:
    from app.core.logging import setup_logging

    setup_logging()
    try:
        asyncio.run(setup())
    except Exception as exc:
        logger.error("Database setup failed", error=str(exc))
        sys.exit(1)


if __name__ == "__main__":
    main()
