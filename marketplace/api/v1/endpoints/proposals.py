from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.api.deps import get_authenticated_session
from marketplace.core.logging_config import logger
from marketplace.crud.opportunities import is_opportunity_author, read_one_opportunity_slim
from marketplace.crud.proposals import create_proposal, read_one_proposal, update_proposal_status
from marketplace.db.database import get_db
from marketplace.schemas.opportunity import OpportunityStatus
from marketplace.schemas.proposal import (
    Proposal,
    ProposalCreate,
    ProposalStatus,
    ProposalStatusUpdate,
    VENDOR_PROPOSAL_STATUSES,
)
from marketplace.schemas.session import Session

router = APIRouter()

# Из каких статусов автор может перевести предложение в целевой
ALLOWED_VENDOR_CHANGES = {
    ProposalStatus.SUBMITTED: [ProposalStatus.DRAFT, ProposalStatus.WITHDRAWN],
    ProposalStatus.WITHDRAWN: [ProposalStatus.SUBMITTED],
}


@router.post("/", response_model=Proposal, status_code=201, summary="Start a draft proposal")
async def create_proposal_endpoint(
        proposal: ProposalCreate,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    if not session.is_vendor:
        raise HTTPException(status_code=403, detail="Only vendors may create proposals")
    opportunity = await read_one_opportunity_slim(db, proposal.opportunity_id, session)
    if opportunity.status != OpportunityStatus.PUBLISHED:
        raise HTTPException(status_code=400, detail="Proposals can only be created for published opportunities")
    return await create_proposal(db, proposal, session)


@router.get("/{proposal_id}", response_model=Proposal)
async def get_proposal(
        proposal_id: str,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    proposal = await read_one_proposal(db, proposal_id)
    if not proposal:
        raise HTTPException(status_code=404, detail="Proposal not found")

    is_author = proposal.created_by == session.user.id
    is_reviewer = (
        proposal.status not in (ProposalStatus.DRAFT, ProposalStatus.WITHDRAWN)
        and await is_opportunity_author(db, session.user, proposal.opportunity_id)
    )
    if not (is_author or session.is_admin or is_reviewer):
        logger.warning(f"User {session.user.id} is not allowed to read proposal {proposal_id}")
        raise HTTPException(status_code=404, detail="Proposal not found")
    return proposal


@router.put("/{proposal_id}/status", response_model=Proposal, summary="Submit or withdraw a proposal")
async def change_proposal_status(
        proposal_id: str,
        request: ProposalStatusUpdate,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    proposal = await read_one_proposal(db, proposal_id)
    if not proposal or proposal.created_by != session.user.id:
        raise HTTPException(status_code=404, detail="Proposal not found")
    if request.status not in VENDOR_PROPOSAL_STATUSES or proposal.status not in ALLOWED_VENDOR_CHANGES[request.status]:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change proposal status from {proposal.status.value} to {request.status.value}"
        )

    opportunity = await read_one_opportunity_slim(db, proposal.opportunity_id, session)
    if opportunity.status != OpportunityStatus.PUBLISHED:
        raise HTTPException(status_code=400, detail="The opportunity is no longer accepting proposals")

    return await update_proposal_status(db, proposal_id, request.status, request.note, session)
