from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from marketplace.models.base import Base


class Proposal(Base):
    __tablename__ = "proposals"

    id = Column(String(36), primary_key=True, index=True)
    opportunity_id = Column(String(36), ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    proposal_text = Column(Text, nullable=False, default="")
    additional_comments = Column(Text, nullable=False, default="")


class ProposalStatusRecord(Base):
    __tablename__ = "proposal_statuses"

    id = Column(String(36), primary_key=True, index=True)
    proposal_id = Column(String(36), ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    status = Column(String, nullable=True)
    event = Column(String, nullable=True)
    note = Column(Text, nullable=False, default="")
