from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ProposalStatus(str, Enum):
    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    UNDER_REVIEW = "UNDER_REVIEW"
    EVALUATED = "EVALUATED"
    AWARDED = "AWARDED"
    NOT_AWARDED = "NOT_AWARDED"
    DISQUALIFIED = "DISQUALIFIED"
    WITHDRAWN = "WITHDRAWN"


# Всё, кроме черновиков и отозванных, считается поданным
SUBMITTED_PROPOSAL_STATUSES = [
    ProposalStatus.SUBMITTED,
    ProposalStatus.UNDER_REVIEW,
    ProposalStatus.EVALUATED,
    ProposalStatus.AWARDED,
    ProposalStatus.NOT_AWARDED,
    ProposalStatus.DISQUALIFIED,
]

# Статусы, которые автор предложения может выставить сам
VENDOR_PROPOSAL_STATUSES = [ProposalStatus.SUBMITTED, ProposalStatus.WITHDRAWN]


class ProposalCreate(BaseModel):
    opportunity_id: str
    proposal_text: str = ""
    additional_comments: str = ""


class ProposalStatusUpdate(BaseModel):
    status: ProposalStatus
    note: str = ""


class Proposal(BaseModel):
    id: str
    opportunity_id: str
    created_at: datetime
    created_by: str
    proposal_text: str
    additional_comments: str
    status: Optional[ProposalStatus] = None

    class Config:
        from_attributes = True
