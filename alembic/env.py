"""Alembic environment for the shiftboard schema.

The database URL comes from ``sqlalchemy.url`` when the caller sets one
(``alembic -x`` wrappers, tests) and otherwise from ``DATABASE_URL`` through
``shiftboard.db.get_database_url``.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from shiftboard import models  # noqa: F401
from shiftboard.db import Base, get_database_url

config = context.config
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def migration_url() -> str:
    return config.get_main_option("sqlalchemy.url") or get_database_url()


def migration_options() -> dict[str, object]:
    # SQLite cannot alter constraints in place; batch mode rebuilds the table.
    return {"target_metadata": target_metadata, "render_as_batch": True, "compare_type": True}


def migrate_to_script() -> None:
    context.configure(
        url=migration_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **migration_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_database() -> None:
    engine_settings = dict(config.get_section(config.config_ini_section) or {})
    engine_settings["sqlalchemy.url"] = migration_url()
    connectable = engine_from_config(engine_settings, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, **migration_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    migrate_to_script()
else:
    migrate_database()
