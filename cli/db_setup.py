"""Database setup commands.

Usage:
    uv run jobly-db-init    # Apply db/migrations/*.sql to DATABASE_URL_ADMIN (or the app URL)
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

_SCRIPTS_DIR = Path(__file__).parent.parent / "scripts"
_SETUP_DB_SCRIPT = _SCRIPTS_DIR / "setup_database.py"


def db_init() -> None:
    """Create the Jobly tables if they do not exist."""
    sys.exit(subprocess.run([sys.executable, str(_SETUP_DB_SCRIPT)], check=False).returncode)
