#!/usr/bin/env python3
"""
Manage database migrations with Alembic.
"""
import sys
from pathlib import Path

from alembic.config import Config
from alembic import command

from app.core.config import settings

root_dir = Path(__file__).parent


def get_alembic_config():
    """Alembic config pointing at the application database."""
    alembic_cfg = Config(str(root_dir / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(root_dir / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def create_migration(message: str):
    """Autogenerate a new revision from the models."""
    alembic_cfg = get_alembic_config()
    command.revision(alembic_cfg, autogenerate=True, message=message)
    print(f"Migration created: {message}")


def run_migrations():
    alembic_cfg = get_alembic_config()
    command.upgrade(alembic_cfg, "head")
    print("Migrations applied")


def rollback_migration():
    """Undo the latest revision."""
    alembic_cfg = get_alembic_config()
    command.downgrade(alembic_cfg, "-1")
    print("Rollback done")


def show_history():
    alembic_cfg = get_alembic_config()
    command.history(alembic_cfg)


def show_current():
    alembic_cfg = get_alembic_config()
    command.current(alembic_cfg)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage:")
        print("  python migrate.py create 'message'  # New migration")
        print("  python migrate.py upgrade            # Apply pending migrations")
        print("  python migrate.py downgrade          # Roll back one revision")
        print("  python migrate.py history            # Show history")
        print("  python migrate.py current            # Show current revision")
        sys.exit(1)

    action = sys.argv[1]

    if action == "create":
        if len(sys.argv) < 3:
            print("Error: a message is required for the migration")
            sys.exit(1)
        create_migration(sys.argv[2])
    elif action == "upgrade":
        run_migrations()
    elif action == "downgrade":
        rollback_migration()
    elif action == "history":
        show_history()
    elif action == "current":
        show_current()
    else:
        print(f"Unknown action: {action}")
        sys.exit(1)
