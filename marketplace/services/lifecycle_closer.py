from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from marketplace.core.config import settings
from marketplace.core.logging_config import logger
from marketplace.crud.opportunities import close_lapsed_opportunities
from marketplace.db.database import AsyncSessionLocal as async_session


async def run_lifecycle_closer() -> int:
    """Один проход: закрывает опубликованные возможности с истёкшим дедлайном."""
    async with async_session() as db:
        logger.info("Starting lapsed opportunities sweep")
        closed = await close_lapsed_opportunities(db)
        logger.info(f"Lapsed opportunities sweep finished, closed={closed}")
        return closed


def create_scheduler() -> AsyncIOScheduler:
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        run_lifecycle_closer,
        trigger=IntervalTrigger(minutes=settings.OPPORTUNITY_CLOSER_INTERVAL_MINUTES),
        id="close_lapsed_opportunities",
        name="Close opportunities past their proposal deadline",
        replace_existing=True,
        max_instances=1,
    )
    return scheduler
