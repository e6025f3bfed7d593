from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.api.deps import get_authenticated_session
from marketplace.core.logging_config import logger
from marketplace.crud.files import create_file, read_one_file_by_id
from marketplace.db.database import get_db
from marketplace.schemas.file import FileCreate, FileRecord
from marketplace.schemas.session import Session

router = APIRouter()

@router.post("/", response_model=FileRecord, status_code=201, summary="Register file metadata")
async def create_file_endpoint(
        file: FileCreate,
        session: Session = Depends(get_authenticated_session),
        db: AsyncSession = Depends(get_db)
):
    db_file = await create_file(db, file, session.user.id)
    logger.info(f"Registered file {db_file.id} ({db_file.name})")
    return db_file

@router.get("/{file_id}", response_model=FileRecord)
async def get_file(file_id: str, db: AsyncSession = Depends(get_db)):
    db_file = await read_one_file_by_id(db, file_id)
    if not db_file:
        raise HTTPException(status_code=404, detail="File not found")
    return db_file
