from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from marketplace.core.utils import generate_uuid, utc_now
from marketplace.db.errors import try_db
from marketplace.models.files import FileRecord
from marketplace.schemas.file import FileCreate


@try_db
async def create_file(db: AsyncSession, file: FileCreate, created_by: str | None) -> FileRecord:
    db_file = FileRecord(
        id=generate_uuid(),
        name=file.name,
        path=file.path,
        created_at=utc_now(),
        created_by=created_by
    )
    db.add(db_file)
    await db.commit()
    await db.refresh(db_file)
    return db_file


@try_db
async def read_one_file_by_id(db: AsyncSession, file_id: str) -> FileRecord | None:
    result = await db.execute(select(FileRecord).filter(FileRecord.id == file_id))
    return result.scalars().first()
