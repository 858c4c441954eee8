import asyncio
import ssl
import sys
import pathlib
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from app.core.config import settings, ModeEnum
from app.models import Pitchbook, Slide, SlideLayout  # noqa: F401 - registers tables with SQLModel.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata
MANAGED_TABLES = {Pitchbook.__tablename__, Slide.__tablename__, SlideLayout.__tablename__}

# `alembic -x db_url=postgresql+asyncpg://...` overrides the settings DSN.
db_url = context.get_x_argument(as_dictionary=True).get("db_url") or str(settings.ASYNC_DATABASE_URI)


def include_name(name, type_, parent_names) -> bool:
    """Keep autogenerate away from tables this service does not own."""
    if type_ == "table":
        return name in MANAGED_TABLES
    return True


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        include_name=include_name,
        compare_type=True,
        **kwargs,
    )


def _connect_args() -> dict:
    # Local Postgres runs without TLS; hosted databases require it.
    if settings.MODE == ModeEnum.development:
        return {}
    ssl_context = ssl.create_default_context()
    ssl_context.check_hostname = False
    ssl_context.verify_mode = ssl.CERT_NONE
    return {"ssl": ssl_context}


def run_migrations_offline() -> None:
    """Emit SQL for the pitchbook tables without a database connection."""
    _configure(url=db_url, literal_binds=True, dialect_opts={"paramstyle": "named"})

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    _configure(connection=connection)

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    connectable = create_async_engine(
        db_url,
        echo=settings.MODE == ModeEnum.development,
        connect_args=_connect_args(),
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
