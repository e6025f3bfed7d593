from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class FileCreate(BaseModel):
    name: str = Field(..., min_length=1)
    path: str = Field(..., min_length=1)


class FileRecord(BaseModel):
    id: str
    name: str
    path: str
    created_at: datetime
    created_by: Optional[str] = None

    class Config:
        from_attributes = True
