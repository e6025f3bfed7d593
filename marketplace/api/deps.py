from typing import Optional
from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.crud.users import read_one_user
from marketplace.db.database import get_db
from marketplace.schemas.session import Session
from marketplace.schemas.user import User, UserStatus


async def get_current_session(
        x_user_id: Optional[str] = Header(None),
        db: AsyncSession = Depends(get_db)
) -> Session:
    if not x_user_id:
        return Session()
    user = await read_one_user(db, x_user_id)
    if not user or user.status != UserStatus.ACTIVE.value:
        raise HTTPException(status_code=401, detail="Unknown or inactive user")
    return Session(user=User.model_validate(user))


async def get_authenticated_session(session: Session = Depends(get_current_session)) -> Session:
    if not session.user:
        raise HTTPException(status_code=401, detail="Authentication required")
    return session
