from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import aliased
from marketplace.core.logging_config import logger
from marketplace.core.utils import generate_uuid, utc_now
from marketplace.db.errors import DatabaseError, try_db
from marketplace.models.proposals import Proposal, ProposalStatusRecord
from marketplace.schemas.proposal import (
    Proposal as ProposalSchema,
    ProposalCreate,
    ProposalStatus,
    SUBMITTED_PROPOSAL_STATUSES,
)
from marketplace.schemas.session import Session


def latest_proposal_status_id(proposal_id_column):
    """Коррелированный подзапрос: id последней строки со статусом для предложения (при равном времени больший id)."""
    statuses2 = aliased(ProposalStatusRecord)
    return (
        select(statuses2.id)
        .where(statuses2.proposal_id == proposal_id_column, statuses2.status.isnot(None))
        .order_by(statuses2.created_at.desc(), statuses2.id.desc())
        .limit(1)
        .scalar_subquery()
    )


def current_proposal_status_query(*columns):
    """Запрос предложений, соединённых с их текущим статусом (алиас statuses)."""
    statuses = aliased(ProposalStatusRecord, name="statuses")
    query = (
        select(*columns, statuses.status.label("status"))
        .select_from(Proposal)
        .join(statuses, statuses.proposal_id == Proposal.id)
        .where(statuses.status.isnot(None))
        .where(statuses.id == latest_proposal_status_id(Proposal.id))
    )
    return query, statuses


@try_db
async def create_proposal(db: AsyncSession, proposal: ProposalCreate, session: Session) -> ProposalSchema:
    now = utc_now()
    db_proposal = Proposal(
        id=generate_uuid(),
        opportunity_id=proposal.opportunity_id,
        created_at=now,
        created_by=session.user.id,
        proposal_text=proposal.proposal_text,
        additional_comments=proposal.additional_comments
    )
    db.add(db_proposal)
    await db.flush()
    db.add(ProposalStatusRecord(
        id=generate_uuid(),
        proposal_id=db_proposal.id,
        created_at=now,
        created_by=session.user.id,
        status=ProposalStatus.DRAFT.value,
        note=""
    ))
    await db.commit()
    logger.info(f"Created proposal {db_proposal.id} for opportunity {proposal.opportunity_id}")
    return await read_one_proposal(db, db_proposal.id)


@try_db
async def read_one_proposal(db: AsyncSession, proposal_id: str) -> ProposalSchema | None:
    query, _ = current_proposal_status_query(
        Proposal.id,
        Proposal.opportunity_id,
        Proposal.created_at,
        Proposal.created_by,
        Proposal.proposal_text,
        Proposal.additional_comments,
    )
    result = await db.execute(query.where(Proposal.id == proposal_id).limit(1))
    row = result.first()
    return ProposalSchema(**row._mapping) if row else None


@try_db
async def read_proposal_status(db: AsyncSession, proposal_id: str) -> ProposalStatus | None:
    query, _ = current_proposal_status_query(Proposal.id)
    result = await db.execute(query.where(Proposal.id == proposal_id).limit(1))
    row = result.first()
    return ProposalStatus(row.status) if row else None


@try_db
async def update_proposal_status(db: AsyncSession, proposal_id: str, status: ProposalStatus, note: str, session: Session) -> ProposalSchema:
    db.add(ProposalStatusRecord(
        id=generate_uuid(),
        proposal_id=proposal_id,
        created_at=utc_now(),
        created_by=session.user.id if session.user else None,
        status=status.value,
        note=note
    ))
    await db.commit()
    proposal = await read_one_proposal(db, proposal_id)
    if not proposal:
        raise DatabaseError("unable to update proposal")
    logger.info(f"Proposal {proposal_id} moved to status {status.value}")
    return proposal


@try_db
async def read_submitted_proposal_count(db: AsyncSession, opportunity_id: str) -> int:
    query, statuses = current_proposal_status_query(Proposal.id)
    query = query.where(
        Proposal.opportunity_id == opportunity_id,
        statuses.status.in_([s.value for s in SUBMITTED_PROPOSAL_STATUSES])
    )
    result = await db.execute(select(func.count()).select_from(query.subquery()))
    return result.scalar() or 0


@try_db
async def read_proposal_ids_with_status(db: AsyncSession, opportunity_id: str, status: ProposalStatus) -> list[str]:
    query, statuses = current_proposal_status_query(Proposal.id)
    result = await db.execute(
        query.where(Proposal.opportunity_id == opportunity_id, statuses.status == status.value)
    )
    return [row.id for row in result.all()]
