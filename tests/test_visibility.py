"""Role-based visibility of opportunities."""

import pytest
from sqlalchemy import select

from marketplace.core.utils import generate_uuid
from marketplace.crud.opportunities import (
    create_opportunity,
    read_many_opportunities,
    read_one_opportunity,
    update_opportunity_status,
    update_opportunity_version,
)
from marketplace.models.opportunities import OpportunityStatusRecord
from marketplace.schemas.opportunity import OpportunityStatus, UpdateOpportunityParams


@pytest.mark.asyncio
async def test_draft_visible_only_to_owner_and_admin(
        db, gov_session, other_gov_session, admin_session, vendor_session, anonymous_session, params_factory
):
    opportunity = await create_opportunity(db, params_factory(), gov_session)

    assert await read_one_opportunity(db, opportunity.id, gov_session) is not None
    assert await read_one_opportunity(db, opportunity.id, admin_session) is not None
    assert await read_one_opportunity(db, opportunity.id, other_gov_session) is None
    assert await read_one_opportunity(db, opportunity.id, vendor_session) is None
    assert await read_one_opportunity(db, opportunity.id, anonymous_session) is None


@pytest.mark.asyncio
async def test_published_visible_to_everyone(
        db, gov_session, other_gov_session, admin_session, vendor_session, anonymous_session, params_factory
):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)

    for session in (gov_session, other_gov_session, admin_session, vendor_session, anonymous_session):
        result = await read_one_opportunity(db, opportunity.id, session)
        assert result is not None
        assert result.status == OpportunityStatus.PUBLISHED


@pytest.mark.asyncio
async def test_suspended_hidden_from_public_again(db, gov_session, vendor_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)
    await update_opportunity_status(db, opportunity.id, OpportunityStatus.SUSPENDED, "", gov_session)

    assert await read_one_opportunity(db, opportunity.id, vendor_session) is None
    assert (await read_one_opportunity(db, opportunity.id, gov_session)).status == OpportunityStatus.SUSPENDED


@pytest.mark.asyncio
async def test_author_fields_hidden_from_non_owners(db, gov_session, admin_session, vendor_session, anonymous_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)

    for session in (vendor_session, anonymous_session):
        result = await read_one_opportunity(db, opportunity.id, session)
        assert result.created_by is None
        assert result.updated_by is None
        assert result.history is None
        assert result.reporting is None

    admin_view = await read_one_opportunity(db, opportunity.id, admin_session)
    assert admin_view.created_by.id == gov_session.user.id
    assert admin_view.history is not None
    assert admin_view.reporting is not None


@pytest.mark.asyncio
async def test_last_editor_sees_author_fields(db, gov_session, admin_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)
    await update_opportunity_version(db, opportunity.id, UpdateOpportunityParams(teaser="Edited by admin"), admin_session)

    result = await read_one_opportunity(db, opportunity.id, gov_session)

    assert result.created_by.id == gov_session.user.id
    assert result.updated_by.id == admin_session.user.id


@pytest.mark.asyncio
async def test_listing_applies_visibility(
        db, gov_session, other_gov_session, admin_session, vendor_session, anonymous_session, params_factory
):
    draft = await create_opportunity(db, params_factory(title="Draft work"), gov_session)
    published = await create_opportunity(db, params_factory(title="Public work", status=OpportunityStatus.PUBLISHED), gov_session)
    other_draft = await create_opportunity(db, params_factory(title="Other draft"), other_gov_session)

    def ids(opportunities):
        return {o.id for o in opportunities}

    assert ids(await read_many_opportunities(db, anonymous_session)) == {published.id}
    assert ids(await read_many_opportunities(db, vendor_session)) == {published.id}
    assert ids(await read_many_opportunities(db, gov_session)) == {draft.id, published.id}
    assert ids(await read_many_opportunities(db, other_gov_session)) == {published.id, other_draft.id}
    assert ids(await read_many_opportunities(db, admin_session)) == {draft.id, published.id, other_draft.id}


@pytest.mark.asyncio
async def test_listing_shows_latest_version_and_status(db, gov_session, vendor_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(status=OpportunityStatus.PUBLISHED), gov_session)
    await update_opportunity_version(db, opportunity.id, UpdateOpportunityParams(title="Renamed"), gov_session)

    listing = await read_many_opportunities(db, vendor_session)

    assert len(listing) == 1
    assert listing[0].title == "Renamed"
    assert listing[0].status == OpportunityStatus.PUBLISHED
    assert listing[0].created_by is None


@pytest.mark.asyncio
async def test_status_rows_with_equal_timestamps_list_once(db, gov_session, admin_session, params_factory):
    opportunity = await create_opportunity(db, params_factory(), gov_session)
    draft_at = (await db.execute(
        select(OpportunityStatusRecord.created_at).filter(OpportunityStatusRecord.opportunity_id == opportunity.id)
    )).scalar()
    db.add(OpportunityStatusRecord(
        id=generate_uuid(),
        opportunity_id=opportunity.id,
        created_at=draft_at,
        created_by=gov_session.user.id,
        status=OpportunityStatus.PUBLISHED.value,
        note=""
    ))
    await db.commit()

    listing = await read_many_opportunities(db, admin_session)
    single = await read_one_opportunity(db, opportunity.id, admin_session)

    assert [o.id for o in listing] == [opportunity.id]
    assert listing[0].status == single.status
