"""Code quality commands."""

import subprocess
import sys

_PATHS = ["app/", "cli/", "scripts/", "tests/"]


def main() -> None:
    """Run ruff linter."""
    sys.exit(
        subprocess.run([sys.executable, "-m", "ruff", "check", *_PATHS], check=False).returncode
    )


def format_code() -> None:
    """Run ruff formatter."""
    sys.exit(
        subprocess.run([sys.executable, "-m", "ruff", "format", *_PATHS], check=False).returncode
    )
