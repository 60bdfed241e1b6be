from __future__ import annotations

"""Create the invigilation tables (staff, halls, assignments, runs, leases, scheduled exams).

Safe to run multiple times: existing tables are left untouched.
"""

import argparse
import sys
from pathlib import Path

# Allow running this script from any working directory.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import inspect

from core.bootstrap import ensure_schema
from core.database import ENGINE
from models import Base


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--yes", action="store_true", help="Actually apply changes")
    args = parser.parse_args()

    existing = set(inspect(ENGINE).get_table_names())
    missing = [name for name in sorted(Base.metadata.tables) if name not in existing]

    print(f"Database: {ENGINE.url.render_as_string(hide_password=True)}")
    if not missing:
        print("All tables present; nothing to do.")
        return

    print("Missing tables:")
    for name in missing:
        print(f"  - {name}")

    if not args.yes:
        print("\nDry run. Re-run with --yes to create them.")
        return

    ensure_schema(ENGINE)
    print("Done.")


if __name__ == "__main__":
    main()
