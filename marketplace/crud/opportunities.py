"""Хранилище возможностей: версии, журнал статусов, дополнения и вложения.

Текущее состояние возможности всегда собирается из корневой записи, последней
версии и последней строки журнала со статусом. Записи никогда не изменяются,
каждое редактирование или смена статуса добавляет новую строку.
"""
from datetime import datetime
from typing import Any

from sqlalchemy import and_, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import aliased

from marketplace.core.logging_config import logger
from marketplace.core.utils import generate_uuid, utc_now
from marketplace.crud.counters import get_opportunity_views_counter_name, read_view_counter
from marketplace.crud.files import read_one_file_by_id
from marketplace.crud.proposals import read_proposal_ids_with_status, read_submitted_proposal_count
from marketplace.crud.subscribers import count_subscribers, is_subscribed
from marketplace.crud.users import read_one_user_slim
from marketplace.db.errors import DatabaseError, try_db
from marketplace.models.opportunities import (
    Opportunity,
    OpportunityAddendum,
    OpportunityAttachment,
    OpportunityStatusRecord,
    OpportunityVersion,
)
from marketplace.models.proposals import ProposalStatusRecord
from marketplace.schemas.file import FileRecord
from marketplace.schemas.opportunity import (
    Addendum,
    CreateOpportunityParams,
    HistoryRecord,
    HistoryRecordType,
    Opportunity as OpportunitySchema,
    OpportunityContent,
    OpportunityEvent,
    OpportunityRoot,
    OpportunitySlim,
    OpportunityStatus,
    PRIVATE_OPPORTUNITY_STATUSES,
    PUBLIC_OPPORTUNITY_STATUSES,
    Reporting,
    UpdateOpportunityParams,
)
from marketplace.schemas.proposal import ProposalStatus
from marketplace.schemas.session import Session
from marketplace.schemas.user import User, UserType

CLOSED_NOTE = "This opportunity has closed."

CONTENT_FIELDS = list(OpportunityContent.model_fields.keys())

PUBLIC_STATUS_VALUES = [s.value for s in PUBLIC_OPPORTUNITY_STATUSES]
PRIVATE_STATUS_VALUES = [s.value for s in PRIVATE_OPPORTUNITY_STATUSES]


def latest_status_id(opportunity_id_column):
    # При равном created_at побеждает больший id, чтобы соединение давало одну строку
    stat2 = aliased(OpportunityStatusRecord)
    return (
        select(stat2.id)
        .where(stat2.opportunity_id == opportunity_id_column, stat2.status.isnot(None))
        .order_by(stat2.created_at.desc(), stat2.id.desc())
        .limit(1)
        .scalar_subquery()
    )


def latest_version_id(opportunity_id_column):
    version2 = aliased(OpportunityVersion)
    return (
        select(version2.id)
        .where(version2.opportunity_id == opportunity_id_column)
        .order_by(version2.created_at.desc(), version2.id.desc())
        .limit(1)
        .scalar_subquery()
    )


def current_opportunity_query(column_names: list[str]):
    """Соединяет корень, последнюю версию (version) и последний статус (stat).

    column_names: поля версии, которые нужно выбрать помимо служебных.
    """
    stat = aliased(OpportunityStatusRecord, name="stat")
    version = aliased(OpportunityVersion, name="version")
    columns = [
        Opportunity.id,
        Opportunity.created_at,
        Opportunity.created_by,
        version.id.label("version_id"),
        version.created_at.label("updated_at"),
        version.created_by.label("updated_by"),
        stat.status.label("status"),
    ]
    columns.extend(getattr(version, name) for name in column_names)
    query = (
        select(*columns)
        .select_from(Opportunity)
        .join(stat, stat.opportunity_id == Opportunity.id)
        .join(version, version.opportunity_id == Opportunity.id)
        .where(stat.status.isnot(None))
        .where(stat.id == latest_status_id(Opportunity.id))
        .where(version.id == latest_version_id(Opportunity.id))
    )
    return query, stat, version


def apply_visibility(query, stat, session: Session):
    user = session.user
    if not user or user.type == UserType.VENDOR:
        # Анонимы и поставщики видят только публичные возможности
        return query.where(stat.status.in_(PUBLIC_STATUS_VALUES))
    if user.type == UserType.GOVERNMENT:
        # Госпользователи видят публичные и свои непубличные
        return query.where(or_(
            stat.status.in_(PUBLIC_STATUS_VALUES),
            and_(stat.status.in_(PRIVATE_STATUS_VALUES), Opportunity.created_by == user.id)
        ))
    return query.where(stat.status.in_(PUBLIC_STATUS_VALUES + PRIVATE_STATUS_VALUES))


def process_for_role(raw: dict[str, Any], session: Session) -> dict[str, Any]:
    """Скрывает автора и редактора от всех, кроме админа, автора и последнего редактора."""
    user = session.user
    if not user or (user.type != UserType.ADMIN
                    and user.id != raw.get("created_by")
                    and user.id != raw.get("updated_by")):
        raw["created_by"] = None
        raw["updated_by"] = None
    return raw


def is_owner_or_admin(raw: dict[str, Any], session: Session) -> bool:
    user = session.user
    if not user:
        return False
    return user.type == UserType.ADMIN or raw.get("created_by") == user.id


async def _resolve_user(db: AsyncSession, user_id: str | None):
    return await read_one_user_slim(db, user_id) if user_id else None


async def _raw_to_opportunity(db: AsyncSession, raw: dict[str, Any]) -> OpportunitySchema:
    attachments = []
    for file_id in raw.pop("attachments", []):
        file = await read_one_file_by_id(db, file_id)
        if not file:
            raise DatabaseError("unable to process opportunity")
        attachments.append(FileRecord.model_validate(file))

    addenda = []
    for addendum_id in raw.pop("addenda", []):
        addenda.append(await read_one_addendum(db, addendum_id))

    raw.pop("version_id", None)
    raw["created_by"] = await _resolve_user(db, raw.get("created_by"))
    raw["updated_by"] = await _resolve_user(db, raw.get("updated_by"))
    return OpportunitySchema(**raw, attachments=attachments, addenda=addenda)


async def _raw_to_history_record(db: AsyncSession, record: OpportunityStatusRecord) -> HistoryRecord:
    if record.status:
        record_type = HistoryRecordType(tag="status", value=record.status)
    elif record.event:
        record_type = HistoryRecordType(tag="event", value=record.event)
    else:
        raise DatabaseError("unable to process opportunity status record")
    return HistoryRecord(
        created_at=record.created_at,
        created_by=await _resolve_user(db, record.created_by),
        type=record_type,
        note=record.note or ""
    )


def _link_attachments(db: AsyncSession, version_id: str, file_ids: list[str]) -> None:
    for file_id in dict.fromkeys(file_ids):
        db.add(OpportunityAttachment(opportunity_version_id=version_id, file_id=file_id))


@try_db
async def read_one_opportunity(db: AsyncSession, opportunity_id: str, session: Session) -> OpportunitySchema | None:
    query, stat, _ = current_opportunity_query(CONTENT_FIELDS)
    query = apply_visibility(query.where(Opportunity.id == opportunity_id), stat, session)
    result = await db.execute(query.limit(1))
    row = result.first()
    if not row:
        return None

    raw = process_for_role(dict(row._mapping), session)

    attachments = await db.execute(
        select(OpportunityAttachment.file_id)
        .filter(OpportunityAttachment.opportunity_version_id == raw["version_id"])
    )
    raw["attachments"] = list(attachments.scalars().all())

    addenda = await db.execute(
        select(OpportunityAddendum.id)
        .filter(OpportunityAddendum.opportunity_id == opportunity_id)
        .order_by(OpportunityAddendum.created_at.asc())
    )
    raw["addenda"] = list(addenda.scalars().all())

    published = await db.execute(
        select(OpportunityStatusRecord.created_at)
        .filter(OpportunityStatusRecord.opportunity_id == opportunity_id,
                OpportunityStatusRecord.status == OpportunityStatus.PUBLISHED.value)
        .order_by(OpportunityStatusRecord.created_at.asc())
        .limit(1)
    )
    raw["published_at"] = published.scalar()

    if raw["status"] == OpportunityStatus.AWARDED.value:
        raw["successful_proponent"] = True

    if session.user:
        raw["subscribed"] = await is_subscribed(db, opportunity_id, session.user.id)

    if is_owner_or_admin(raw, session):
        records = await db.execute(
            select(OpportunityStatusRecord)
            .filter(OpportunityStatusRecord.opportunity_id == opportunity_id)
            .order_by(OpportunityStatusRecord.created_at.desc())
        )
        raw["history"] = [await _raw_to_history_record(db, record) for record in records.scalars().all()]

        if raw["status"] in PUBLIC_STATUS_VALUES:
            raw["reporting"] = Reporting(
                num_views=await read_view_counter(db, get_opportunity_views_counter_name(opportunity_id)),
                num_watchers=await count_subscribers(db, opportunity_id),
                num_proposals=await read_submitted_proposal_count(db, opportunity_id)
            )

    return await _raw_to_opportunity(db, raw)


@try_db
async def read_one_opportunity_slim(db: AsyncSession, opportunity_id: str, session: Session) -> OpportunitySlim:
    # Для slim нужны те же соединения, поэтому читаем полную версию и урезаем
    opportunity = await read_one_opportunity(db, opportunity_id, session)
    if not opportunity:
        raise DatabaseError("unable to read opportunity")
    return OpportunitySlim(**opportunity.model_dump(include=set(OpportunitySlim.model_fields.keys())))


@try_db
async def read_one_addendum(db: AsyncSession, addendum_id: str) -> Addendum:
    result = await db.execute(select(OpportunityAddendum).filter(OpportunityAddendum.id == addendum_id))
    addendum = result.scalars().first()
    if not addendum:
        raise DatabaseError("unable to read addendum")
    return Addendum(
        id=addendum.id,
        description=addendum.description,
        created_at=addendum.created_at,
        created_by=await _resolve_user(db, addendum.created_by)
    )


@try_db
async def read_many_opportunities(db: AsyncSession, session: Session) -> list[OpportunitySlim]:
    query, stat, _ = current_opportunity_query(["title", "proposal_deadline"])
    query = apply_visibility(query, stat, session).order_by(Opportunity.created_at.desc())
    result = await db.execute(query)

    opportunities = []
    for row in result.all():
        raw = process_for_role(dict(row._mapping), session)
        raw.pop("version_id", None)
        raw["created_by"] = await _resolve_user(db, raw.get("created_by"))
        raw["updated_by"] = await _resolve_user(db, raw.get("updated_by"))
        opportunities.append(OpportunitySlim(**raw))
    return opportunities


@try_db
async def create_opportunity(db: AsyncSession, params: CreateOpportunityParams, session: Session) -> OpportunitySchema:
    now = utc_now()
    user_id = session.user.id

    root = Opportunity(id=generate_uuid(), created_at=now, created_by=user_id)
    db.add(root)
    await db.flush()

    version = OpportunityVersion(
        id=generate_uuid(),
        opportunity_id=root.id,
        created_at=now,
        created_by=user_id,
        **params.model_dump(include=set(CONTENT_FIELDS))
    )
    db.add(version)
    db.add(OpportunityStatusRecord(
        id=generate_uuid(),
        opportunity_id=root.id,
        created_at=now,
        created_by=user_id,
        status=params.status.value,
        note=""
    ))
    await db.flush()
    _link_attachments(db, version.id, params.attachments)
    await db.commit()
    logger.info(f"Created opportunity {root.id} with status {params.status.value}")

    opportunity = await read_one_opportunity(db, root.id, session)
    if not opportunity:
        raise DatabaseError("unable to create opportunity")
    return opportunity


async def is_opportunity_author(db: AsyncSession, user: User, opportunity_id: str) -> bool:
    try:
        result = await db.execute(
            select(Opportunity.id).filter(Opportunity.id == opportunity_id, Opportunity.created_by == user.id)
        )
        return result.first() is not None
    except Exception as e:
        logger.warning(f"Unable to check author of opportunity {opportunity_id}: {str(e)}")
        return False


@try_db
async def update_opportunity_version(db: AsyncSession, opportunity_id: str, params: UpdateOpportunityParams, session: Session) -> OpportunitySchema:
    now = utc_now()
    result = await db.execute(
        select(OpportunityVersion)
        .filter(OpportunityVersion.opportunity_id == opportunity_id)
        .order_by(OpportunityVersion.created_at.desc())
        .limit(1)
    )
    previous = result.scalars().first()
    if not previous:
        raise DatabaseError("unable to update opportunity")

    content = {name: getattr(previous, name) for name in CONTENT_FIELDS}
    content.update(params.model_dump(exclude_unset=True, exclude={"attachments"}))

    if params.attachments is None:
        linked = await db.execute(
            select(OpportunityAttachment.file_id)
            .filter(OpportunityAttachment.opportunity_version_id == previous.id)
        )
        attachments = list(linked.scalars().all())
    else:
        attachments = params.attachments

    version = OpportunityVersion(
        id=generate_uuid(),
        opportunity_id=opportunity_id,
        created_at=now,
        created_by=session.user.id,
        **content
    )
    db.add(version)
    db.add(OpportunityStatusRecord(
        id=generate_uuid(),
        opportunity_id=opportunity_id,
        created_at=now,
        created_by=session.user.id,
        event=OpportunityEvent.EDITED.value,
        note=""
    ))
    await db.flush()
    _link_attachments(db, version.id, attachments)
    await db.commit()
    logger.info(f"Opportunity {opportunity_id} edited, new version {version.id}")

    opportunity = await read_one_opportunity(db, opportunity_id, session)
    if not opportunity:
        raise DatabaseError("unable to update opportunity")
    return opportunity


@try_db
async def update_opportunity_status(db: AsyncSession, opportunity_id: str, status: OpportunityStatus, note: str, session: Session) -> OpportunitySchema:
    db.add(OpportunityStatusRecord(
        id=generate_uuid(),
        opportunity_id=opportunity_id,
        created_at=utc_now(),
        created_by=session.user.id,
        status=status.value,
        note=note
    ))
    await db.commit()
    logger.info(f"Opportunity {opportunity_id} moved to status {status.value}")

    opportunity = await read_one_opportunity(db, opportunity_id, session)
    if not opportunity:
        raise DatabaseError("unable to update opportunity")
    return opportunity


@try_db
async def add_opportunity_addendum(db: AsyncSession, opportunity_id: str, description: str, session: Session) -> OpportunitySchema:
    now = utc_now()
    db.add(OpportunityAddendum(
        id=generate_uuid(),
        opportunity_id=opportunity_id,
        description=description,
        created_at=now,
        created_by=session.user.id
    ))
    db.add(OpportunityStatusRecord(
        id=generate_uuid(),
        opportunity_id=opportunity_id,
        created_at=now,
        created_by=session.user.id,
        event=OpportunityEvent.ADDENDUM_ADDED.value,
        note=""
    ))
    await db.commit()
    logger.info(f"Addendum added to opportunity {opportunity_id}")

    opportunity = await read_one_opportunity(db, opportunity_id, session)
    if not opportunity:
        raise DatabaseError("unable to add addendum")
    return opportunity


@try_db
async def delete_opportunity(db: AsyncSession, opportunity_id: str) -> OpportunityRoot:
    # Версии, статусы, дополнения и вложения удаляются каскадом в БД
    result = await db.execute(select(Opportunity).filter(Opportunity.id == opportunity_id))
    root = result.scalars().first()
    if not root:
        raise DatabaseError("unable to delete opportunity")
    deleted = OpportunityRoot(
        id=root.id,
        created_at=root.created_at,
        created_by=await _resolve_user(db, root.created_by)
    )
    await db.execute(delete(Opportunity).where(Opportunity.id == opportunity_id))
    await db.commit()
    logger.info(f"Deleted opportunity {opportunity_id}")
    return deleted


@try_db
async def read_lapsed_opportunity_ids(db: AsyncSession, now: datetime) -> list[str]:
    query, stat, version = current_opportunity_query([])
    result = await db.execute(
        query.where(stat.status == OpportunityStatus.PUBLISHED.value, version.proposal_deadline <= now)
    )
    return [row.id for row in result.all()]


@try_db
async def close_lapsed_opportunities(db: AsyncSession, now: datetime | None = None) -> int:
    """Переводит опубликованные возможности с истёкшим дедлайном в EVALUATION.

    Каждая возможность закрывается в своей транзакции вместе с её поданными предложениями.
    """
    now = now or utc_now()
    lapsed_ids = await read_lapsed_opportunity_ids(db, now)
    await db.commit()

    closed = 0
    for opportunity_id in lapsed_ids:
        try:
            db.add(OpportunityStatusRecord(
                id=generate_uuid(),
                opportunity_id=opportunity_id,
                created_at=now,
                created_by=None,
                status=OpportunityStatus.EVALUATION.value,
                note=CLOSED_NOTE
            ))
            proposal_ids = await read_proposal_ids_with_status(db, opportunity_id, ProposalStatus.SUBMITTED)
            for proposal_id in proposal_ids:
                db.add(ProposalStatusRecord(
                    id=generate_uuid(),
                    proposal_id=proposal_id,
                    created_at=now,
                    created_by=None,
                    status=ProposalStatus.UNDER_REVIEW.value,
                    note=""
                ))
            await db.commit()
            closed += 1
            logger.info(f"Closed opportunity {opportunity_id}, {len(proposal_ids)} proposals moved to review")
        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to close opportunity {opportunity_id}: {str(e)}")
    return closed
