"""Tests for opportunity payload validation."""

from datetime import datetime, timedelta, timezone

from marketplace.schemas.opportunity import OpportunityStatus
from marketplace.services.opportunity_validation import validate_content, validate_create


def test_valid_payload_has_no_errors(params_factory):
    assert validate_create(params_factory()) == []
    assert validate_create(params_factory(status=OpportunityStatus.PUBLISHED)) == []


def test_required_fields(params_factory):
    errors = validate_content(params_factory(title=" ", location="", skills=[], description="", reward=0))

    assert "Title is required" in errors
    assert "Location is required" in errors
    assert "At least one skill is required" in errors
    assert "Description is required" in errors
    assert "Reward must be a positive amount" in errors


def test_title_length(params_factory):
    errors = validate_content(params_factory(title="x" * 201))

    assert errors == ["Title must be at most 200 characters"]


def test_date_ordering(params_factory):
    deadline = datetime.now(timezone.utc) + timedelta(days=10)
    errors = validate_content(params_factory(
        proposal_deadline=deadline,
        assignment_date=deadline - timedelta(days=1),
        start_date=deadline - timedelta(days=2),
        completion_date=deadline - timedelta(days=3),
    ))

    assert "Assignment date must be after the proposal deadline" in errors
    assert "Start date must be on or after the assignment date" in errors
    assert "Completion date must be on or after the start date" in errors


def test_published_on_creation_needs_future_deadline(params_factory):
    errors = validate_create(params_factory(status=OpportunityStatus.PUBLISHED, deadline_in_days=-1))

    assert errors == ["Proposal deadline must be in the future"]


def test_draft_may_have_past_deadline(params_factory):
    assert validate_create(params_factory(deadline_in_days=-1)) == []


def test_cannot_create_in_other_statuses(params_factory):
    errors = validate_create(params_factory(status=OpportunityStatus.AWARDED))

    assert errors == ["Opportunities cannot be created with status AWARDED"]
