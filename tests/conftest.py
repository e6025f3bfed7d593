"""Pytest configuration and fixtures."""

import os
import tempfile

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("OPPORTUNITY_CLOSER_ENABLED", "false")
os.environ.setdefault("LOG_FILE", os.path.join(tempfile.gettempdir(), "marketplace-tests.log"))

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from marketplace.crud.users import create_user
from marketplace.db.database import enable_sqlite_foreign_keys, get_db
from marketplace.main import app
from marketplace.models.base import Base
from marketplace.models import counters, files, opportunities, proposals, users  # noqa: F401
from marketplace.schemas.opportunity import CreateOpportunityParams, OpportunityStatus
from marketplace.schemas.session import Session
from marketplace.schemas.user import User, UserCreate, UserType


@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    """HTTP client against the app with get_db bound to the test database."""
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


async def _make_session(db, user_type: UserType, name: str) -> Session:
    db_user = await create_user(db, UserCreate(type=user_type, name=name, idp_username=name.lower().replace(" ", "-")))
    return Session(user=User.model_validate(db_user))


@pytest_asyncio.fixture
async def gov_session(db):
    return await _make_session(db, UserType.GOVERNMENT, "Gov Owner")


@pytest_asyncio.fixture
async def other_gov_session(db):
    return await _make_session(db, UserType.GOVERNMENT, "Gov Other")


@pytest_asyncio.fixture
async def admin_session(db):
    return await _make_session(db, UserType.ADMIN, "Admin")


@pytest_asyncio.fixture
async def vendor_session(db):
    return await _make_session(db, UserType.VENDOR, "Vendor")


@pytest.fixture
def anonymous_session():
    return Session()


def make_params(status: OpportunityStatus = OpportunityStatus.DRAFT, deadline_in_days: int = 14, **overrides) -> CreateOpportunityParams:
    """Valid create payload; deadline_in_days may be negative for lapsed opportunities."""
    now = datetime.now(timezone.utc)
    deadline = now + timedelta(days=deadline_in_days)
    fields = {
        "title": "Modernize permit search",
        "teaser": "Help us rebuild the permit search page.",
        "remote_ok": True,
        "remote_desc": "Fully remote",
        "location": "Victoria",
        "reward": 70000,
        "skills": ["Python", "React"],
        "description": "Rebuild the permit search page with accessible components.",
        "proposal_deadline": deadline,
        "assignment_date": deadline + timedelta(days=7),
        "start_date": deadline + timedelta(days=14),
        "completion_date": deadline + timedelta(days=60),
        "submission_info": "github.com/example/permits",
        "acceptance_criteria": "All tests pass.",
        "evaluation_criteria": "Code quality.",
        "status": status,
        "attachments": [],
    }
    fields.update(overrides)
    return CreateOpportunityParams(**fields)


@pytest.fixture
def params_factory():
    return make_params
