from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class UserType(str, Enum):
    VENDOR = "VENDOR"
    GOVERNMENT = "GOV"
    ADMIN = "ADMIN"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE_BY_USER = "INACTIVE_USER"
    INACTIVE_BY_ADMIN = "INACTIVE_ADMIN"


class UserCreate(BaseModel):
    type: UserType
    name: str = Field(..., min_length=1)
    email: Optional[str] = None
    idp_username: str = Field(..., min_length=1)
    notifications_on: bool = False
    accepted_terms: bool = False


class User(BaseModel):
    id: str
    type: UserType
    status: UserStatus
    name: str
    email: Optional[str] = None
    idp_username: str
    notifications_on: bool = False
    accepted_terms: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserSlim(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True
