from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine

from libs.common.config import Settings, get_settings
from libs.db.base import Base
from libs.db.config import build_session_factory
from libs.db.session import get_async_db
from services.canteen_service.app.main import app
from services.canteen_service.models import User, UserRole
from services.canteen_service.schemas import OrderCreate
from services.canteen_service.seed import seed_users
from services.canteen_service.services.identity import Caller
from services.canteen_service.services.order_lifecycle import OrderLifecycleService
from services.canteen_service.services.order_store import OrderStore

OWNER_EMAIL = "canteen@vit.edu"
STUDENT_EMAIL = "harshad.1251090072@vit.edu"
STUDENT_PRN = "1251090072"
OTHER_STUDENT_EMAIL = "sarthak.1251090107@vit.edu"
OTHER_STUDENT_PRN = "1251090107"

SAMOSA = {"name": "Samosa", "quantity": 2, "unitPrice": 20}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def owner_caller() -> Caller:
    return Caller(email=OWNER_EMAIL, role=UserRole.OWNER)


def student_caller(user: User) -> Caller:
    return Caller(user_id=user.id, email=user.email, role=UserRole.STUDENT)


def samosa_order(user_id, **overrides) -> OrderCreate:
    """The canonical two-samosa cart: 40 + 5% tax = 42."""
    body = {"userId": user_id, "items": [dict(SAMOSA)], "total": 42}
    body.update(overrides)
    return OrderCreate.model_validate(body)


def make_service(
    db: AsyncSession, settings: Settings | None = None
) -> OrderLifecycleService:
    return OrderLifecycleService(OrderStore(db), settings=settings)


def settings_with(**overrides) -> Settings:
    return get_settings().model_copy(update=overrides)


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    """
    A fresh SQLite file database per test.

    A file (not :memory:) so separate sessions get separate connections and
    concurrent writers really contend for the database lock.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'canteen.db'}",
        connect_args={"timeout": 15},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return build_session_factory(test_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def users(db_session) -> dict[str, User]:
    """Seed the demo users and return them keyed by email."""
    await seed_users(db_session)
    result = await db_session.execute(select(User))
    return {user.email: user for user in result.scalars().all()}


@pytest_asyncio.fixture
async def student(users) -> User:
    return users[STUDENT_EMAIL]


@pytest_asyncio.fixture
async def other_student(users) -> User:
    return users[OTHER_STUDENT_EMAIL]


@pytest.fixture
def service(db_session) -> OrderLifecycleService:
    return make_service(db_session)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(session_factory, users) -> AsyncGenerator[AsyncClient, None]:
    """
    Yield an AsyncClient bound to the app, with every request getting its own
    session on the test database.
    """

    async def _test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_db] = _test_db

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers() -> dict:
    return {"X-Owner-Email": OWNER_EMAIL}
