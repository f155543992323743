# backend/fiableauto/alembic/env.py
"""
Alembic environment for the mission tables.

Run from backend/:  alembic upgrade head
The URL comes from alembic.ini when set, otherwise DATABASE_WRITE_URL /
DATABASE_URL, normalised the same way the application does it.
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig

from alembic import context

# backend/ must be importable so "fiableauto" resolves when alembic is run
# from another working directory.
_BACKEND_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from fiableauto import database  # noqa: E402
from fiableauto.apps.missions import models as mission_models  # noqa: F401, E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = database.Base.metadata

COMPARE_OPTIONS = {"compare_type": True, "compare_server_default": True}


def migration_url() -> str:
    url = (config.get_main_option("sqlalchemy.url") or "").strip()
    if not url or url.startswith("driver://"):
        url = (os.getenv("DATABASE_WRITE_URL") or os.getenv("DATABASE_URL") or "").strip()
    if not url:
        raise RuntimeError(
            "No database URL: set sqlalchemy.url in alembic.ini or DATABASE_WRITE_URL / DATABASE_URL."
        )
    return database.normalise_url(url)


def run_migrations_offline() -> None:
    """Emit SQL to stdout without a database connection."""
    context.configure(
        url=migration_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMPARE_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = database.init_engines(migration_url())
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                render_as_batch=connection.dialect.name == "sqlite",
                **COMPARE_OPTIONS,
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        database.dispose_engines()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
