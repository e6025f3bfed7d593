from sqlalchemy import Column, String, Text, Integer, Boolean, DateTime, ForeignKey, JSON, PrimaryKeyConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from marketplace.models.base import Base


class Opportunity(Base):
    """Корневая запись возможности: только идентичность, после создания не меняется."""
    __tablename__ = "opportunities"

    id = Column(String(36), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)

    versions = relationship("OpportunityVersion", back_populates="opportunity", passive_deletes=True)
    statuses = relationship("OpportunityStatusRecord", back_populates="opportunity", passive_deletes=True)
    addenda = relationship("OpportunityAddendum", back_populates="opportunity", passive_deletes=True)


class OpportunityVersion(Base):
    __tablename__ = "opportunity_versions"

    id = Column(String(36), primary_key=True, index=True)
    opportunity_id = Column(String(36), ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=False)
    title = Column(String, nullable=False)
    teaser = Column(Text, nullable=False, default="")
    remote_ok = Column(Boolean, nullable=False, default=False)
    remote_desc = Column(Text, nullable=False, default="")
    location = Column(String, nullable=False)
    reward = Column(Integer, nullable=False)
    skills = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    description = Column(Text, nullable=False, default="")
    proposal_deadline = Column(DateTime(timezone=True), nullable=False)
    assignment_date = Column(DateTime(timezone=True), nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    completion_date = Column(DateTime(timezone=True), nullable=True)
    submission_info = Column(Text, nullable=False, default="")
    acceptance_criteria = Column(Text, nullable=False, default="")
    evaluation_criteria = Column(Text, nullable=False, default="")

    opportunity = relationship("Opportunity", back_populates="versions")


class OpportunityStatusRecord(Base):
    """Журнал статусов и событий. В каждой строке заполнен либо status, либо event."""
    __tablename__ = "opportunity_statuses"

    id = Column(String(36), primary_key=True, index=True)
    opportunity_id = Column(String(36), ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    status = Column(String, nullable=True)
    event = Column(String, nullable=True)
    note = Column(Text, nullable=False, default="")

    opportunity = relationship("Opportunity", back_populates="statuses")


class OpportunityAddendum(Base):
    __tablename__ = "opportunity_addenda"

    id = Column(String(36), primary_key=True, index=True)
    opportunity_id = Column(String(36), ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    created_by = Column(String(36), ForeignKey("users.id"), nullable=True)

    opportunity = relationship("Opportunity", back_populates="addenda")


class OpportunityAttachment(Base):
    __tablename__ = "opportunity_attachments"
    __table_args__ = (PrimaryKeyConstraint("opportunity_version_id", "file_id", name="pk_opportunity_attachments"),)

    opportunity_version_id = Column(String(36), ForeignKey("opportunity_versions.id", ondelete="CASCADE"), nullable=False)
    file_id = Column(String(36), ForeignKey("files.id", ondelete="CASCADE"), nullable=False)


class OpportunitySubscriber(Base):
    __tablename__ = "opportunity_subscribers"
    __table_args__ = (PrimaryKeyConstraint("opportunity_id", "user_id", name="pk_opportunity_subscribers"),)

    opportunity_id = Column(String(36), ForeignKey("opportunities.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
