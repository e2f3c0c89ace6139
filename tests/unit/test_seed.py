"""Unit tests for demo user provisioning."""

import pytest
from services.canteen_service.errors import InvalidFormat
from services.canteen_service.models import User, UserRole
from services.canteen_service.seed import DEMO_STUDENTS, build_user, seed_users
from sqlalchemy import func, select


@pytest.mark.asyncio
@pytest.mark.unit
async def test_seed_is_idempotent(db_session):
    assert await seed_users(db_session) == len(DEMO_STUDENTS) + 1
    assert await seed_users(db_session) == 0

    count = await db_session.scalar(select(func.count()).select_from(User))
    assert count == len(DEMO_STUDENTS) + 1


@pytest.mark.unit
def test_build_user_derives_role_and_secret():
    owner = build_user("Canteen@VIT.edu", "Canteen Admin")
    student = build_user("gaurav.1251090175@vit.edu", "Gaurav Pawar")

    assert (owner.email, owner.role, owner.secret) == (
        "canteen@vit.edu",
        UserRole.OWNER,
        "canteen",
    )
    assert (student.role, student.secret) == (UserRole.STUDENT, "1251090175")


@pytest.mark.unit
def test_build_user_rejects_unsupported_address():
    with pytest.raises(InvalidFormat):
        build_user("someone@example.com", "Someone")
