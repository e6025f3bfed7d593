import asyncio
import asyncpg
from alembic import command
from alembic.config import Config as AlembicConfig
from sqlalchemy.engine import make_url
from marketplace.core.config import settings
from marketplace.core.logging_config import logger
from marketplace.db.errors import DatabaseError


def to_asyncpg_dsn(database_url: str) -> str | None:
    """DSN для asyncpg или None, если база не PostgreSQL (ждать её не нужно)."""
    url = make_url(database_url)
    if url.get_backend_name() != "postgresql":
        return None
    return url.set(drivername="postgresql").render_as_string(hide_password=False)


async def wait_for_db(dsn: str, retries: int = settings.DB_CONNECT_RETRIES,
                      delay: float = settings.DB_CONNECT_DELAY_SECONDS) -> int:
    """Ждёт, пока PostgreSQL начнёт принимать соединения. Возвращает номер удачной попытки."""
    last_error = None
    for attempt in range(1, retries + 1):
        try:
            conn = await asyncpg.connect(dsn)
        except (OSError, asyncpg.PostgresError) as e:
            last_error = e
            logger.warning(f"Database not ready, attempt {attempt}/{retries}: {e}")
            if attempt < retries:
                await asyncio.sleep(delay)
            continue
        await conn.close()
        logger.info(f"Database accepted connection on attempt {attempt}")
        return attempt
    raise DatabaseError(f"database unavailable after {retries} attempts: {last_error}")


def apply_migrations(database_url: str | None = None, config_file: str = "alembic.ini") -> None:
    database_url = database_url or settings.DATABASE_URL
    dsn = to_asyncpg_dsn(database_url)
    if dsn:
        asyncio.run(wait_for_db(dsn))

    alembic_cfg = AlembicConfig(config_file)
    alembic_cfg.set_main_option("sqlalchemy.url", database_url)
    logger.info(f"Upgrading {make_url(database_url).get_backend_name()} schema to head")
    try:
        command.upgrade(alembic_cfg, "head")
    except Exception as e:
        logger.error(f"Failed to apply migrations: {e}")
        raise
    logger.info("Migrations applied")


if __name__ == "__main__":
    apply_migrations()
