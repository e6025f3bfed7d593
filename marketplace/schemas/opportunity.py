from enum import Enum
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime
from marketplace.schemas.file import FileRecord
from marketplace.schemas.user import UserSlim


class OpportunityStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    EVALUATION = "EVALUATION"
    AWARDED = "AWARDED"
    SUSPENDED = "SUSPENDED"
    CANCELED = "CANCELED"


class OpportunityEvent(str, Enum):
    EDITED = "EDITED"
    ADDENDUM_ADDED = "ADDENDUM_ADDED"


PUBLIC_OPPORTUNITY_STATUSES = [
    OpportunityStatus.PUBLISHED,
    OpportunityStatus.EVALUATION,
    OpportunityStatus.AWARDED,
]

PRIVATE_OPPORTUNITY_STATUSES = [
    OpportunityStatus.DRAFT,
    OpportunityStatus.CANCELED,
    OpportunityStatus.SUSPENDED,
]

CREATE_OPPORTUNITY_STATUSES = [OpportunityStatus.DRAFT, OpportunityStatus.PUBLISHED]

# Статусы, в которых к возможности можно добавить дополнение
ADDENDUM_OPPORTUNITY_STATUSES = [
    OpportunityStatus.PUBLISHED,
    OpportunityStatus.SUSPENDED,
    OpportunityStatus.EVALUATION,
]


class OpportunityContent(BaseModel):
    """Редактируемое содержимое возможности, хранится в версиях."""
    title: str
    teaser: str = ""
    remote_ok: bool = False
    remote_desc: str = ""
    location: str
    reward: int
    skills: List[str] = []
    description: str = ""
    proposal_deadline: datetime
    assignment_date: datetime
    start_date: datetime
    completion_date: Optional[datetime] = None
    submission_info: str = ""
    acceptance_criteria: str = ""
    evaluation_criteria: str = ""


class CreateOpportunityParams(OpportunityContent):
    status: OpportunityStatus = OpportunityStatus.DRAFT
    attachments: List[str] = []


class UpdateOpportunityParams(BaseModel):
    """Частичное обновление: непереданные поля берутся из текущей версии."""
    title: Optional[str] = None
    teaser: Optional[str] = None
    remote_ok: Optional[bool] = None
    remote_desc: Optional[str] = None
    location: Optional[str] = None
    reward: Optional[int] = None
    skills: Optional[List[str]] = None
    description: Optional[str] = None
    proposal_deadline: Optional[datetime] = None
    assignment_date: Optional[datetime] = None
    start_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    submission_info: Optional[str] = None
    acceptance_criteria: Optional[str] = None
    evaluation_criteria: Optional[str] = None
    attachments: Optional[List[str]] = None


class UpdateStatusRequest(BaseModel):
    status: OpportunityStatus
    note: str = ""


class AddendumCreate(BaseModel):
    description: str = Field(..., min_length=1)


class Addendum(BaseModel):
    id: str
    description: str
    created_at: datetime
    created_by: Optional[UserSlim] = None


class HistoryRecordType(BaseModel):
    tag: Literal["status", "event"]
    value: str


class HistoryRecord(BaseModel):
    created_at: datetime
    created_by: Optional[UserSlim] = None
    type: HistoryRecordType
    note: str = ""


class Reporting(BaseModel):
    num_views: int = 0
    num_watchers: int = 0
    num_proposals: int = 0


class Opportunity(OpportunityContent):
    id: str
    created_at: datetime
    created_by: Optional[UserSlim] = None
    updated_at: datetime
    updated_by: Optional[UserSlim] = None
    status: OpportunityStatus
    attachments: List[FileRecord] = []
    addenda: List[Addendum] = []
    published_at: Optional[datetime] = None
    successful_proponent: Optional[bool] = None
    subscribed: Optional[bool] = None
    history: Optional[List[HistoryRecord]] = None
    reporting: Optional[Reporting] = None


class OpportunitySlim(BaseModel):
    id: str
    title: str
    created_at: datetime
    created_by: Optional[UserSlim] = None
    updated_at: datetime
    updated_by: Optional[UserSlim] = None
    proposal_deadline: datetime
    status: OpportunityStatus


class OpportunityRoot(BaseModel):
    id: str
    created_at: datetime
    created_by: Optional[UserSlim] = None


class OpportunityListResponse(BaseModel):
    opportunities: List[OpportunitySlim]
    total: int


class CloseLapsedResponse(BaseModel):
    closed: int


class ViewCountResponse(BaseModel):
    opportunity_id: str
    count: int


class SubscriptionResponse(BaseModel):
    opportunity_id: str
    subscribed: bool
