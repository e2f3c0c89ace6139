"""
Identity check for canteen users.

Students log in with the PRN embedded in their email address
(``firstname.<digits>@<domain>``); the owner logs in with a fixed literal.
Role is derived from the email with a single rule, ``derive_role``, used both
at login and wherever an owner check happens. This is a demo credential
scheme, not a hardened one.
"""

import hmac
import re
from dataclasses import dataclass
from typing import Optional

from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger
from services.canteen_service.errors import (
    InvalidCredentials,
    InvalidFormat,
    UnknownUser,
)
from services.canteen_service.models import User, UserRole
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


@dataclass(frozen=True)
class Caller:
    """Who is asking. ``role`` is ``None`` for anonymous callers."""

    user_id: Optional[int] = None
    email: Optional[str] = None
    role: Optional[UserRole] = None

    @property
    def is_owner(self) -> bool:
        return self.role is UserRole.OWNER

    @property
    def is_anonymous(self) -> bool:
        return self.role is None


ANONYMOUS = Caller()


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def student_email_pattern(settings: Settings) -> re.Pattern:
    domain = re.escape(settings.STUDENT_EMAIL_DOMAIN)
    return re.compile(
        rf"^[a-z]+\.(\d{{{settings.PRN_LENGTH}}})@{domain}$", re.IGNORECASE
    )


def is_owner_email(email: Optional[str], settings: Optional[Settings] = None) -> bool:
    settings = settings or get_settings()
    return normalize_email(email) == settings.OWNER_EMAIL


def derive_role(email: Optional[str], settings: Optional[Settings] = None) -> UserRole:
    """The one authoritative role rule: the reserved address is the owner."""
    return UserRole.OWNER if is_owner_email(email, settings) else UserRole.STUDENT


def derive_secret(email: Optional[str], settings: Optional[Settings] = None) -> str:
    """Return the login secret implied by ``email``.

    Raises ``InvalidFormat`` when the address is neither the owner's nor a
    student address.
    """
    settings = settings or get_settings()
    email = normalize_email(email)
    if email == settings.OWNER_EMAIL:
        return settings.OWNER_SECRET

    match = student_email_pattern(settings).match(email)
    if not match:
        raise InvalidFormat()
    return match.group(1)


async def authenticate(
    db: AsyncSession,
    email: Optional[str],
    secret: Optional[str],
    settings: Optional[Settings] = None,
) -> tuple[User, UserRole]:
    """Check ``secret`` against the one derived from ``email``.

    Returns the stored user and the derived role.
    """
    settings = settings or get_settings()
    email = normalize_email(email)
    expected = derive_secret(email, settings)

    if not hmac.compare_digest((secret or "").encode(), expected.encode()):
        raise InvalidCredentials()

    result = await db.execute(
        select(User).where(User.email == email, User.secret == expected)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise UnknownUser()

    role = derive_role(email, settings)
    if user.role != role:
        logger.warning(
            "Stored role %s for user %s disagrees with derived role %s; using derived",
            user.role.value,
            user.id,
            role.value,
        )
    return user, role


def owner_caller_from_header(
    header_value: Optional[str], settings: Optional[Settings] = None
) -> Caller:
    """An owner-identifying header either names the owner or means nothing."""
    if header_value and is_owner_email(header_value, settings):
        return Caller(email=normalize_email(header_value), role=UserRole.OWNER)
    return ANONYMOUS


def student_caller(
    user_id: int, email: Optional[str], settings: Optional[Settings] = None
) -> Caller:
    return Caller(
        user_id=user_id,
        email=normalize_email(email),
        role=derive_role(email, settings),
    )
