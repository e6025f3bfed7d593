from datetime import datetime, timezone
from marketplace.schemas.opportunity import CreateOpportunityParams, OpportunityContent, OpportunityStatus

MAX_TITLE_LENGTH = 200
MAX_TEASER_LENGTH = 500


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def validate_content(content: OpportunityContent) -> list[str]:
    errors = []

    if not content.title or not content.title.strip():
        errors.append("Title is required")
    elif len(content.title) > MAX_TITLE_LENGTH:
        errors.append(f"Title must be at most {MAX_TITLE_LENGTH} characters")
    if len(content.teaser or "") > MAX_TEASER_LENGTH:
        errors.append(f"Teaser must be at most {MAX_TEASER_LENGTH} characters")
    if not content.location or not content.location.strip():
        errors.append("Location is required")
    if content.reward is None or content.reward <= 0:
        errors.append("Reward must be a positive amount")
    if not content.skills:
        errors.append("At least one skill is required")
    if not content.description or not content.description.strip():
        errors.append("Description is required")

    if content.proposal_deadline and content.assignment_date:
        if _aware(content.proposal_deadline) >= _aware(content.assignment_date):
            errors.append("Assignment date must be after the proposal deadline")
    if content.assignment_date and content.start_date:
        if _aware(content.assignment_date) > _aware(content.start_date):
            errors.append("Start date must be on or after the assignment date")
    if content.start_date and content.completion_date:
        if _aware(content.start_date) > _aware(content.completion_date):
            errors.append("Completion date must be on or after the start date")

    return errors


def validate_create(params: CreateOpportunityParams, now: datetime | None = None) -> list[str]:
    errors = validate_content(params)
    now = now or datetime.now(timezone.utc)

    if params.status not in (OpportunityStatus.DRAFT, OpportunityStatus.PUBLISHED):
        errors.append(f"Opportunities cannot be created with status {params.status.value}")
    if params.status == OpportunityStatus.PUBLISHED and _aware(params.proposal_deadline) <= now:
        errors.append("Proposal deadline must be in the future")

    return errors
