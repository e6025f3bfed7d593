from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from marketplace.db.errors import DatabaseError, try_db
from marketplace.models.counters import ViewCounter

UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def get_opportunity_views_counter_name(opportunity_id: str) -> str:
    return f"opportunity.code-with-us.{opportunity_id}.views"


def increment_counter_statement(dialect_name: str, name: str):
    """INSERT ... ON CONFLICT DO UPDATE: одновременное создание счётчика не упирается в первичный ключ."""
    insert = UPSERT_INSERTS.get(dialect_name)
    if insert is None:
        raise DatabaseError(f"view counters are not supported on {dialect_name}")
    statement = insert(ViewCounter).values(name=name, count=1)
    return statement.on_conflict_do_update(
        index_elements=[ViewCounter.name],
        set_={"count": ViewCounter.count + 1}
    ).returning(ViewCounter.count)


@try_db
async def read_view_counter(db: AsyncSession, name: str) -> int:
    result = await db.execute(select(ViewCounter.count).filter(ViewCounter.name == name))
    return result.scalar() or 0


@try_db
async def increment_view_counter(db: AsyncSession, name: str) -> int:
    result = await db.execute(increment_counter_statement(db.get_bind().dialect.name, name))
    count = result.scalar_one()
    await db.commit()
    return count
