from sqlalchemy import Column, String, Boolean, DateTime, func
from marketplace.models.base import Base

class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, index=True)
    type = Column(String, nullable=False)  # VENDOR, GOV, ADMIN
    status = Column(String, nullable=False, default="ACTIVE")
    name = Column(String, nullable=False)
    email = Column(String)
    idp_username = Column(String, nullable=False)
    notifications_on = Column(Boolean, nullable=False, default=False)
    accepted_terms = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
