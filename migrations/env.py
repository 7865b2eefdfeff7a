"""Alembic environment for the catalog schema.

Migrations run synchronously, so async driver names in the configured URL
are swapped for their sync counterparts.
"""
import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if PROJECT_ROOT not in sys.path:
    sys.path.append(PROJECT_ROOT)

from models.base import Base  # noqa: E402
from models import category, url_rewrite, user  # noqa: E402,F401  (register tables)
from settings.config import get_settings  # noqa: E402

config = context.config
if not config.get_main_option("script_location"):
    config.set_main_option("script_location", os.path.join(PROJECT_ROOT, "migrations"))
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

SYNC_DRIVERS = {"+asyncpg": "+psycopg", "+aiosqlite": ""}


def sync_database_url() -> str:
    url = get_settings().build_database_url()
    for async_driver, sync_driver in SYNC_DRIVERS.items():
        url = url.replace(async_driver, sync_driver)
    return url


def run_migrations() -> None:
    options = {"target_metadata": Base.metadata, "compare_type": True}
    if context.is_offline_mode():
        context.configure(url=sync_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"}, **options)
        with context.begin_transaction():
            context.run_migrations()
        return

    engine = create_engine(sync_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, **options)
        with context.begin_transaction():
            context.run_migrations()


run_migrations()
