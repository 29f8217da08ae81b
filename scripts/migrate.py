#!/usr/bin/env python3
"""Database migration helper.

Runs Alembic from the project root, copying a file-backed SQLite database
aside before anything that changes the schema.

Usage:
    python scripts/migrate.py upgrade head    # Upgrade to latest
    python scripts/migrate.py downgrade -1    # Downgrade one version
    python scripts/migrate.py current         # Show current version
    python scripts/migrate.py generate "Add column"  # Autogenerate a migration
"""

import shutil
import subprocess
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from dotenv import load_dotenv

load_dotenv(PROJECT_ROOT / ".env")

from launchproxy.config import get_settings


def run_alembic(*args) -> int:
    cmd = ["alembic"] + list(args)
    print(f"Running: {' '.join(cmd)}")
    return subprocess.run(cmd, cwd=PROJECT_ROOT).returncode


def backup_database() -> Optional[Path]:
    """Copy the SQLite file next to itself with a timestamp suffix."""
    url = get_settings().database_url
    if not url.startswith("sqlite") or ":memory:" in url or ":///" not in url:
        return None

    db_path = Path(url.split(":///", 1)[1])
    if not db_path.exists():
        return None

    backup_path = db_path.with_name(f"{db_path.stem}_{datetime.now():%Y%m%d_%H%M%S}{db_path.suffix}")
    shutil.copy2(db_path, backup_path)
    return backup_path


def main() -> int:
    if len(sys.argv) < 2:
        print(__doc__)
        return 1

    command, args = sys.argv[1], sys.argv[2:]

    if command in ("upgrade", "downgrade"):
        backup_path = backup_database()
        print(f"Backup created: {backup_path}" if backup_path else "No database file to back up")
        target = args[0] if args else ("head" if command == "upgrade" else "-1")
        return run_alembic(command, target)

    if command == "generate":
        if not args:
            print("Usage: migrate.py generate 'Migration message'")
            return 1
        return run_alembic("revision", "--autogenerate", "-m", " ".join(args))

    # Pass through to alembic
    return run_alembic(command, *args)


if __name__ == "__main__":
    sys.exit(main())
