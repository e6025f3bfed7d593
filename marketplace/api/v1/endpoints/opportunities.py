from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.api.deps import get_authenticated_session, get_current_session
from marketplace.core.logging_config import logger
from marketplace.crud.counters import get_opportunity_views_counter_name, increment_view_counter
from marketplace.crud.opportunities import (
    add_opportunity_addendum,
    close_lapsed_opportunities,
    create_opportunity,
    delete_opportunity,
    is_opportunity_author,
    read_many_opportunities,
    read_one_opportunity,
    update_opportunity_status,
    update_opportunity_version,
)
from marketplace.crud.subscribers import subscribe, unsubscribe
from marketplace.db.database import get_db
from marketplace.schemas.opportunity import (
    ADDENDUM_OPPORTUNITY_STATUSES,
    AddendumCreate,
    CloseLapsedResponse,
    CreateOpportunityParams,
    Opportunity,
    OpportunityContent,
    OpportunityListResponse,
    OpportunityRoot,
    OpportunityStatus,
    SubscriptionResponse,
    UpdateOpportunityParams,
    UpdateStatusRequest,
    ViewCountResponse,
)
from marketplace.schemas.session import Session
from marketplace.services.opportunity_state_machine import is_valid_status_change
from marketplace.services.opportunity_validation import validate_content, validate_create

router = APIRouter()


async def get_visible_opportunity(db: AsyncSession, opportunity_id: str, session: Session) -> Opportunity:
    opportunity = await read_one_opportunity(db, opportunity_id, session)
    if not opportunity:
        logger.warning(f"Opportunity {opportunity_id} not found")
        raise HTTPException(status_code=404, detail="Opportunity not found")
    return opportunity


async def get_owned_opportunity(db: AsyncSession, opportunity_id: str, session: Session) -> Opportunity:
    """Возможность, которую текущий пользователь может изменять (автор или админ)."""
    opportunity = await get_visible_opportunity(db, opportunity_id, session)
    if not session.is_admin and not await is_opportunity_author(db, session.user, opportunity_id):
        logger.warning(f"User {session.user.id} is not allowed to modify opportunity {opportunity_id}")
        raise HTTPException(status_code=403, detail="Not allowed to modify this opportunity")
    return opportunity


@router.get("/", response_model=OpportunityListResponse, summary="List opportunities visible to the requester")
async def get_opportunities(
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    opportunities = await read_many_opportunities(db, session)
    logger.info(f"Returning {len(opportunities)} opportunities")
    return {"opportunities": opportunities, "total": len(opportunities)}


@router.post(
    "/",
    response_model=Opportunity,
    status_code=201,
    summary="Create an opportunity",
    responses={
        400: {"description": "Validation failed", "content": {
            "application/json": {"example": {"detail": {"errors": ["Title is required"]}}}}},
        403: {"description": "Only government and admin users may create opportunities"}
    }
)
async def create_opportunity_endpoint(
        params: CreateOpportunityParams,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    if not (session.is_admin or session.is_government):
        raise HTTPException(status_code=403, detail="Only government and admin users may create opportunities")

    errors = validate_create(params)
    if errors:
        logger.warning(f"Opportunity validation failed: {'; '.join(errors)}")
        raise HTTPException(status_code=400, detail={"errors": errors})

    return await create_opportunity(db, params, session)


@router.post("/close-lapsed", response_model=CloseLapsedResponse, summary="Close opportunities past their deadline")
async def close_lapsed(
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    if not session.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    closed = await close_lapsed_opportunities(db)
    logger.info(f"Admin {session.user.id} closed {closed} lapsed opportunities")
    return {"closed": closed}


@router.get("/{opportunity_id}", response_model=Opportunity)
async def get_opportunity(
        opportunity_id: str,
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    logger.info(f"Fetching opportunity {opportunity_id}")
    return await get_visible_opportunity(db, opportunity_id, session)


@router.put("/{opportunity_id}", response_model=Opportunity, summary="Edit an opportunity (creates a new version)")
async def edit_opportunity(
        opportunity_id: str,
        params: UpdateOpportunityParams,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    current = await get_owned_opportunity(db, opportunity_id, session)
    if current.status in (OpportunityStatus.AWARDED, OpportunityStatus.CANCELED):
        raise HTTPException(status_code=400, detail=f"Opportunities in status {current.status.value} cannot be edited")

    try:
        merged = OpportunityContent(**{
            **current.model_dump(include=set(OpportunityContent.model_fields.keys())),
            **params.model_dump(exclude_unset=True, exclude={"attachments"}),
        })
    except ValidationError as e:
        # Явный null для обязательного поля
        errors = [f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()]
        logger.warning(f"Opportunity {opportunity_id} validation failed: {'; '.join(errors)}")
        raise HTTPException(status_code=400, detail={"errors": errors})
    errors = validate_content(merged)
    if errors:
        logger.warning(f"Opportunity {opportunity_id} validation failed: {'; '.join(errors)}")
        raise HTTPException(status_code=400, detail={"errors": errors})

    return await update_opportunity_version(db, opportunity_id, params, session)


@router.put("/{opportunity_id}/status", response_model=Opportunity, summary="Change opportunity status")
async def change_opportunity_status(
        opportunity_id: str,
        request: UpdateStatusRequest,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    current = await get_owned_opportunity(db, opportunity_id, session)
    if not await is_valid_status_change(opportunity_id, current.status, request.status):
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change status from {current.status.value} to {request.status.value}"
        )
    return await update_opportunity_status(db, opportunity_id, request.status, request.note, session)


@router.post("/{opportunity_id}/addenda", response_model=Opportunity, status_code=201, summary="Publish an addendum")
async def add_addendum(
        opportunity_id: str,
        addendum: AddendumCreate,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    current = await get_owned_opportunity(db, opportunity_id, session)
    if current.status not in ADDENDUM_OPPORTUNITY_STATUSES:
        raise HTTPException(status_code=400, detail=f"Addenda cannot be added in status {current.status.value}")
    return await add_opportunity_addendum(db, opportunity_id, addendum.description, session)


@router.delete("/{opportunity_id}", response_model=OpportunityRoot, summary="Delete a draft opportunity")
async def delete_opportunity_endpoint(
        opportunity_id: str,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    current = await get_owned_opportunity(db, opportunity_id, session)
    if current.status != OpportunityStatus.DRAFT:
        raise HTTPException(status_code=400, detail="Only draft opportunities can be deleted")
    return await delete_opportunity(db, opportunity_id)


@router.post("/{opportunity_id}/subscribers", response_model=SubscriptionResponse)
async def subscribe_to_opportunity(
        opportunity_id: str,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    await get_visible_opportunity(db, opportunity_id, session)
    if await subscribe(db, opportunity_id, session.user.id):
        logger.info(f"User {session.user.id} subscribed to opportunity {opportunity_id}")
    return {"opportunity_id": opportunity_id, "subscribed": True}


@router.delete("/{opportunity_id}/subscribers", response_model=SubscriptionResponse)
async def unsubscribe_from_opportunity(
        opportunity_id: str,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    if await unsubscribe(db, opportunity_id, session.user.id):
        logger.info(f"User {session.user.id} unsubscribed from opportunity {opportunity_id}")
    return {"opportunity_id": opportunity_id, "subscribed": False}


@router.post("/{opportunity_id}/views", response_model=ViewCountResponse)
async def record_view(
        opportunity_id: str,
        session: Session = Depends(get_current_session),
        db: AsyncSession = Depends(get_db)
):
    await get_visible_opportunity(db, opportunity_id, session)
    count = await increment_view_counter(db, get_opportunity_views_counter_name(opportunity_id))
    return {"opportunity_id": opportunity_id, "count": count}
