from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from marketplace.core.utils import utc_now
from marketplace.db.errors import try_db
from marketplace.models.opportunities import OpportunitySubscriber


@try_db
async def is_subscribed(db: AsyncSession, opportunity_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(OpportunitySubscriber.user_id)
        .filter(OpportunitySubscriber.opportunity_id == opportunity_id, OpportunitySubscriber.user_id == user_id)
    )
    return result.first() is not None


@try_db
async def count_subscribers(db: AsyncSession, opportunity_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(OpportunitySubscriber)
        .filter(OpportunitySubscriber.opportunity_id == opportunity_id)
    )
    return result.scalar() or 0


@try_db
async def subscribe(db: AsyncSession, opportunity_id: str, user_id: str) -> bool:
    if await is_subscribed(db, opportunity_id, user_id):
        return False
    db.add(OpportunitySubscriber(opportunity_id=opportunity_id, user_id=user_id, created_at=utc_now()))
    await db.commit()
    return True


@try_db
async def unsubscribe(db: AsyncSession, opportunity_id: str, user_id: str) -> bool:
    result = await db.execute(
        delete(OpportunitySubscriber)
        .where(OpportunitySubscriber.opportunity_id == opportunity_id, OpportunitySubscriber.user_id == user_id)
    )
    await db.commit()
    return result.rowcount > 0
