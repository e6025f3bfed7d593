from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.core.logging_config import logger
from marketplace.crud.users import create_user, read_one_user
from marketplace.db.database import get_db
from marketplace.schemas.user import User, UserCreate

router = APIRouter()

@router.post("/", response_model=User, status_code=201, summary="Create a user")
async def create_user_endpoint(user: UserCreate, db: AsyncSession = Depends(get_db)):
    db_user = await create_user(db, user)
    logger.info(f"Created user {db_user.id} of type {db_user.type}")
    return db_user

@router.get("/{user_id}", response_model=User)
async def get_user(user_id: str, db: AsyncSession = Depends(get_db)):
    db_user = await read_one_user(db, user_id)
    if not db_user:
        logger.warning(f"User {user_id} not found")
        raise HTTPException(status_code=404, detail="User not found")
    return db_user
