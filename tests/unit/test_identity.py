"""Unit tests for the login check and role derivation."""

import logging

import pytest
from services.canteen_service.errors import (
    InvalidCredentials,
    InvalidFormat,
    UnknownUser,
)
from services.canteen_service.models import UserRole
from services.canteen_service.services.identity import (
    authenticate,
    derive_role,
    derive_secret,
    owner_caller_from_header,
    student_caller,
)
from tests.conftest import OWNER_EMAIL, STUDENT_EMAIL, STUDENT_PRN
from tests.factories import UserFactory

# ---------------------------------------------------------------------------
# derive_secret / derive_role
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_student_secret_is_prn():
    assert derive_secret(STUDENT_EMAIL) == STUDENT_PRN


@pytest.mark.unit
def test_owner_secret_is_fixed_literal():
    assert derive_secret(OWNER_EMAIL) == "canteen"


@pytest.mark.unit
def test_email_is_case_insensitive():
    assert derive_secret("  Harshad.1251090072@VIT.edu ") == STUDENT_PRN
    assert derive_role("CANTEEN@vit.edu") is UserRole.OWNER


@pytest.mark.unit
@pytest.mark.parametrize(
    "email",
    [
        "harshad@vit.edu",
        "harshad.125109007@vit.edu",
        "harshad.12510900720@vit.edu",
        "harshad.1251090072@gmail.com",
        "h4rshad.1251090072@vit.edu",
        "",
        None,
    ],
)
def test_invalid_email_format(email):
    with pytest.raises(InvalidFormat):
        derive_secret(email)


@pytest.mark.unit
def test_role_is_student_for_everything_but_owner_address():
    assert derive_role(STUDENT_EMAIL) is UserRole.STUDENT
    assert derive_role("someone@elsewhere.com") is UserRole.STUDENT


# ---------------------------------------------------------------------------
# Callers
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_owner_header_must_name_the_owner():
    assert owner_caller_from_header(OWNER_EMAIL).is_owner
    assert owner_caller_from_header(STUDENT_EMAIL).is_anonymous
    assert owner_caller_from_header(None).is_anonymous


@pytest.mark.unit
def test_student_caller_role_follows_email():
    caller = student_caller(7, STUDENT_EMAIL)
    assert caller.user_id == 7
    assert caller.role is UserRole.STUDENT
    assert not caller.is_anonymous


# ---------------------------------------------------------------------------
# authenticate
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_student_login(db_session, student):
    user, role = await authenticate(db_session, STUDENT_EMAIL, STUDENT_PRN)

    assert user.id == student.id
    assert role is UserRole.STUDENT


@pytest.mark.asyncio
@pytest.mark.unit
async def test_owner_login(db_session, users):
    user, role = await authenticate(db_session, OWNER_EMAIL, "canteen")

    assert user.email == OWNER_EMAIL
    assert role is UserRole.OWNER


@pytest.mark.asyncio
@pytest.mark.unit
async def test_wrong_secret(db_session, users):
    with pytest.raises(InvalidCredentials):
        await authenticate(db_session, STUDENT_EMAIL, "1251090073")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_bad_format_checked_before_lookup(db_session, users):
    with pytest.raises(InvalidFormat):
        await authenticate(db_session, "not-an-email", "whatever")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_well_formed_but_unknown_user(db_session, users):
    with pytest.raises(UnknownUser) as exc_info:
        await authenticate(db_session, "nobody.1234567890@vit.edu", "1234567890")

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
@pytest.mark.unit
async def test_derived_role_overrides_stored_role(db_session, caplog):
    """A stale stored role never changes what the login reports."""
    user = UserFactory.create(
        email=OWNER_EMAIL,
        full_name="Canteen Admin",
        secret="canteen",
        role=UserRole.STUDENT,
    )
    db_session.add(user)
    await db_session.commit()

    with caplog.at_level(logging.WARNING):
        _, role = await authenticate(db_session, OWNER_EMAIL, "canteen")

    assert role is UserRole.OWNER
    assert "disagrees with derived role" in caplog.text
