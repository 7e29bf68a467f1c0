from logging.config import fileConfig
from sqlalchemy import pool, create_engine
from alembic import context

# database.config loads .env and resolves DATABASE_URL the same way the API does
from database.config import DATABASE_URL
from database.models import Base

config = context.config

# Logging comes from the [loggers] sections of alembic.ini
if config.config_file_name:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url():
    """The -x url=... override wins over the application setting."""
    return context.get_x_argument(as_dictionary=True).get("url") or DATABASE_URL


def run_migrations_offline():
    """
    Emit SQL for the marketplace schema without connecting.
    """
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    """
    Apply migrations against a live database.
    """
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
