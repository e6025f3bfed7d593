from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from marketplace.core.utils import generate_uuid
from marketplace.db.errors import try_db
from marketplace.models.users import User
from marketplace.schemas.user import UserCreate, UserSlim, UserStatus


@try_db
async def create_user(db: AsyncSession, user: UserCreate) -> User:
    db_user = User(
        id=generate_uuid(),
        type=user.type.value,
        status=UserStatus.ACTIVE.value,
        name=user.name,
        email=user.email,
        idp_username=user.idp_username,
        notifications_on=user.notifications_on,
        accepted_terms=user.accepted_terms
    )
    db.add(db_user)
    await db.commit()
    await db.refresh(db_user)
    return db_user


@try_db
async def read_one_user(db: AsyncSession, user_id: str) -> User | None:
    result = await db.execute(select(User).filter(User.id == user_id))
    return result.scalars().first()


@try_db
async def read_one_user_slim(db: AsyncSession, user_id: str) -> UserSlim | None:
    result = await db.execute(select(User.id, User.name).filter(User.id == user_id))
    row = result.first()
    return UserSlim(id=row.id, name=row.name) if row else None
