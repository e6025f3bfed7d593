"""Tests for the opportunity version store and status history."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select

from marketplace.crud import opportunities as opportunities_crud
from marketplace.crud.counters import get_opportunity_views_counter_name, increment_view_counter
from marketplace.crud.files import create_file
from marketplace.crud.opportunities import (
    add_opportunity_addendum,
    create_opportunity,
    delete_opportunity,
    is_opportunity_author,
    read_one_opportunity,
    read_one_opportunity_slim,
    update_opportunity_status,
    update_opportunity_version,
)
from marketplace.crud.proposals import create_proposal, update_proposal_status
from marketplace.crud.subscribers import subscribe
from marketplace.db.errors import DatabaseError
from marketplace.models.opportunities import (
    OpportunityAddendum,
    OpportunityStatusRecord,
    OpportunityVersion,
)
from marketplace.schemas.file import FileCreate
from marketplace.schemas.opportunity import OpportunityEvent, OpportunityStatus, UpdateOpportunityParams
from marketplace.schemas.proposal import ProposalCreate, ProposalStatus


async def _count(db, model, opportunity_id):
    result = await db.execute(select(func.count()).select_from(model).filter(model.opportunity_id == opportunity_id))
    return result.scalar()


@pytest.mark.asyncio
async def test_create_returns_initial_version_and_status(db, gov_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(), gov_session)

    assert opportunity.title == "Modernize permit search"
    assert opportunity.status == OpportunityStatus.DRAFT
    assert opportunity.skills == ["Python", "React"]
    assert opportunity.created_by.id == gov_session.user.id
    assert opportunity.updated_by.id == gov_session.user.id
    assert opportunity.published_at is None
    assert opportunity.attachments == []
    assert opportunity.addenda == []
    assert [record.type.value for record in opportunity.history] == ["DRAFT"]
    assert opportunity.reporting is None


@pytest.mark.asyncio
async def test_edit_creates_new_version_and_edited_event(db, gov_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(), gov_session)

    updated = await update_opportunity_version(
        db, opportunity.id, UpdateOpportunityParams(title="Rebuild permit search", reward=80000), gov_session
    )

    assert updated.title == "Rebuild permit search"
    assert updated.reward == 80000
    # Поля, которые не передавали, берутся из предыдущей версии
    assert updated.location == "Victoria"
    assert updated.status == OpportunityStatus.DRAFT
    assert await _count(db, OpportunityVersion, opportunity.id) == 2

    latest = updated.history[0]
    assert latest.type.tag == "event"
    assert latest.type.value == OpportunityEvent.EDITED.value

    titles = await db.execute(select(OpportunityVersion.title).filter(OpportunityVersion.opportunity_id == opportunity.id))
    assert sorted(titles.scalars().all()) == ["Modernize permit search", "Rebuild permit search"]


@pytest.mark.asyncio
async def test_events_do_not_change_current_status(db, gov_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)

    updated = await add_opportunity_addendum(db, opportunity.id, "Deadline clarified.", gov_session)

    assert updated.status == OpportunityStatus.PUBLISHED
    assert len(updated.addenda) == 1
    assert updated.addenda[0].description == "Deadline clarified."
    assert updated.addenda[0].created_by.id == gov_session.user.id
    assert updated.history[0].type.value == OpportunityEvent.ADDENDUM_ADDED.value
    assert await _count(db, OpportunityAddendum, opportunity.id) == 1


@pytest.mark.asyncio
async def test_status_change_appends_history_newest_first(db, gov_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(), gov_session)

    published = await update_opportunity_status(db, opportunity.id, OpportunityStatus.PUBLISHED, "Ready", gov_session)
    suspended = await update_opportunity_status(db, opportunity.id, OpportunityStatus.SUSPENDED, "On hold", gov_session)

    assert published.status == OpportunityStatus.PUBLISHED
    assert published.published_at is not None
    assert suspended.status == OpportunityStatus.SUSPENDED
    assert [record.type.value for record in suspended.history] == ["SUSPENDED", "PUBLISHED", "DRAFT"]
    assert suspended.history[0].note == "On hold"
    assert await _count(db, OpportunityStatusRecord, opportunity.id) == 3


@pytest.mark.asyncio
async def test_published_at_is_first_publication(db, gov_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)
    first_published_at = opportunity.published_at

    await update_opportunity_status(db, opportunity.id, OpportunityStatus.SUSPENDED, "", gov_session)
    republished = await update_opportunity_status(db, opportunity.id, OpportunityStatus.PUBLISHED, "", gov_session)

    assert republished.published_at == first_published_at


@pytest.mark.asyncio
async def test_awarded_opportunity_flags_successful_proponent(db, gov_session, vendor_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)
    evaluation = await update_opportunity_status(db, opportunity.id, OpportunityStatus.EVALUATION, "", gov_session)
    assert evaluation.successful_proponent is None

    awarded = await update_opportunity_status(db, opportunity.id, OpportunityStatus.AWARDED, "Winner picked", gov_session)

    assert awarded.status == OpportunityStatus.AWARDED
    assert awarded.successful_proponent is True
    assert (await read_one_opportunity(db, opportunity.id, vendor_session)).successful_proponent is True


@pytest.mark.asyncio
async def test_attachments_follow_current_version(db, gov_session, params_factory):
    first = await create_file(db, FileCreate(name="scope.pdf", path="files/scope.pdf"), gov_session.user.id)
    second = await create_file(db, FileCreate(name="terms.pdf", path="files/terms.pdf"), gov_session.user.id)
    opportunity = await create_opportunity(db, params_factory(attachments=[first.id]), gov_session)
    assert [f.id for f in opportunity.attachments] == [first.id]

    replaced = await update_opportunity_version(db, opportunity.id, UpdateOpportunityParams(attachments=[second.id]), gov_session)
    assert [f.name for f in replaced.attachments] == ["terms.pdf"]

    carried = await update_opportunity_version(db, opportunity.id, UpdateOpportunityParams(teaser="New teaser"), gov_session)
    assert [f.id for f in carried.attachments] == [second.id]


@pytest.mark.asyncio
async def test_missing_attachment_fails_the_read(db, gov_session, params_factory, monkeypatch):
    file = await create_file(db, FileCreate(name="scope.pdf", path="files/scope.pdf"), gov_session.user.id)
    opportunity = await create_opportunity(db, params_factory(attachments=[file.id]), gov_session)

    monkeypatch.setattr(opportunities_crud, "read_one_file_by_id", AsyncMock(return_value=None))

    with pytest.raises(DatabaseError, match="unable to process opportunity"):
        await read_one_opportunity(db, opportunity.id, gov_session)


@pytest.mark.asyncio
async def test_reporting_for_owner_of_public_opportunity(db, gov_session, vendor_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)
    await increment_view_counter(db, get_opportunity_views_counter_name(opportunity.id))
    await increment_view_counter(db, get_opportunity_views_counter_name(opportunity.id))
    await subscribe(db, opportunity.id, vendor_session.user.id)
    submitted = await create_proposal(db, ProposalCreate(opportunity_id=opportunity.id), vendor_session)
    await update_proposal_status(db, submitted.id, ProposalStatus.SUBMITTED, "", vendor_session)
    await create_proposal(db, ProposalCreate(opportunity_id=opportunity.id), vendor_session)

    result = await read_one_opportunity(db, opportunity.id, gov_session)

    assert result.reporting.num_views == 2
    assert result.reporting.num_watchers == 1
    # Черновики не считаются
    assert result.reporting.num_proposals == 1


@pytest.mark.asyncio
async def test_subscribed_flag_for_authenticated_users(db, gov_session, vendor_session, anonymous_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)
    await subscribe(db, opportunity.id, vendor_session.user.id)

    assert (await read_one_opportunity(db, opportunity.id, vendor_session)).subscribed is True
    assert (await read_one_opportunity(db, opportunity.id, gov_session)).subscribed is False
    assert (await read_one_opportunity(db, opportunity.id, anonymous_session)).subscribed is None


@pytest.mark.asyncio
async def test_read_one_slim(db, gov_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(), gov_session)

    slim = await read_one_opportunity_slim(db, opportunity.id, gov_session)

    assert slim.id == opportunity.id
    assert slim.title == opportunity.title
    assert slim.status == OpportunityStatus.DRAFT
    assert slim.created_by.id == gov_session.user.id


@pytest.mark.asyncio
async def test_read_one_slim_fails_when_not_visible(db, gov_session, vendor_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(), gov_session)

    with pytest.raises(DatabaseError, match="unable to read opportunity"):
        await read_one_opportunity_slim(db, opportunity.id, vendor_session)


@pytest.mark.asyncio
async def test_delete_cascades_to_history(db, gov_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)
    await add_opportunity_addendum(db, opportunity.id, "Note", gov_session)

    deleted = await delete_opportunity(db, opportunity.id)

    assert deleted.id == opportunity.id
    assert deleted.created_by.id == gov_session.user.id
    assert await read_one_opportunity(db, opportunity.id, gov_session) is None
    assert await _count(db, OpportunityVersion, opportunity.id) == 0
    assert await _count(db, OpportunityStatusRecord, opportunity.id) == 0
    assert await _count(db, OpportunityAddendum, opportunity.id) == 0


@pytest.mark.asyncio
async def test_delete_missing_opportunity_raises(db):
    with pytest.raises(DatabaseError):
        await delete_opportunity(db, "00000000-0000-0000-0000-000000000000")


@pytest.mark.asyncio
async def test_is_opportunity_author(db, gov_session, other_gov_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(), gov_session)

    assert await is_opportunity_author(db, gov_session.user, opportunity.id) is True
    assert await is_opportunity_author(db, other_gov_session.user, opportunity.id) is False
