"""Demo users for local runs and tests.

Secrets are derived from the email, so each entry only names the person.
Seeding is idempotent: existing emails are left untouched.
"""

from typing import Iterable, Optional

from libs.common.config import Settings, get_settings
from libs.common.logging import get_logger
from services.canteen_service.models import User
from services.canteen_service.services.identity import (
    derive_role,
    derive_secret,
    normalize_email,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

DEMO_STUDENTS = [
    ("harshad.1251090072@vit.edu", "Harshad Pawar"),
    ("sarthak.1251090107@vit.edu", "Sarthak Pawar"),
    ("gaurav.1251090175@vit.edu", "Gaurav Pawar"),
    ("sanyam.1251090397@vit.edu", "Sanyam Pawar"),
]
OWNER_FULL_NAME = "Canteen Admin"


def demo_users(settings: Optional[Settings] = None) -> list[tuple[str, str]]:
    settings = settings or get_settings()
    return [*DEMO_STUDENTS, (settings.OWNER_EMAIL, OWNER_FULL_NAME)]


def build_user(email: str, full_name: str, settings: Optional[Settings] = None) -> User:
    """Provision a user; raises ``InvalidFormat`` for unsupported addresses."""
    email = normalize_email(email)
    return User(
        email=email,
        full_name=full_name,
        role=derive_role(email, settings),
        secret=derive_secret(email, settings),
    )


async def seed_users(
    db: AsyncSession,
    users: Optional[Iterable[tuple[str, str]]] = None,
    settings: Optional[Settings] = None,
) -> int:
    """Insert any missing users and return how many were created."""
    settings = settings or get_settings()
    users = list(users if users is not None else demo_users(settings))

    result = await db.execute(
        select(User.email).where(User.email.in_([normalize_email(e) for e, _ in users]))
    )
    existing = set(result.scalars().all())

    created = 0
    for email, full_name in users:
        if normalize_email(email) in existing:
            continue
        db.add(build_user(email, full_name, settings))
        created += 1

    await db.commit()
    logger.info("Seeded %d new users (%d already present)", created, len(existing))
    return created
