from sqlalchemy import Column, Integer, String
from marketplace.models.base import Base

class ViewCounter(Base):
    __tablename__ = "view_counters"

    name = Column(String, primary_key=True)
    count = Column(Integer, nullable=False, default=0)
