import asyncio

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool
from marketplace.core.config import settings
from marketplace.db.database import enable_sqlite_foreign_keys
from marketplace.models.base import Base
from marketplace.models import counters, files, opportunities, proposals, users  # noqa: F401 регистрирует таблицы

config = context.config
target_metadata = Base.metadata

def run_migrations_offline():
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()

def do_run_migrations(connection):
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()

async def run_migrations_online():
    # URL из alembic.ini (его выставляет migrate.py) важнее настроек приложения
    connectable = create_async_engine(config.get_main_option("sqlalchemy.url") or settings.DATABASE_URL, poolclass=NullPool)
    enable_sqlite_foreign_keys(connectable)
    async with connectable.begin() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()

if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
