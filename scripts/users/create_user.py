#!/usr/bin/env python3
"""
Provision one canteen user.

The login secret and role are derived from the email, so only the address
and display name are needed:

    python scripts/users/create_user.py riya.1251090200@vit.edu "Riya Shah"
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(
    0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
)

from libs.db.config import AsyncSessionLocal, engine
from services.canteen_service.errors import InvalidFormat
from services.canteen_service.seed import seed_users


async def create_user(email: str, full_name: str) -> int:
    async with AsyncSessionLocal() as session:
        created = await seed_users(session, users=[(email, full_name)])
    await engine.dispose()
    return created


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("email")
    parser.add_argument("full_name")
    args = parser.parse_args()

    try:
        created = asyncio.run(create_user(args.email, args.full_name))
    except InvalidFormat:
        print(f"❌ {args.email} is not a student or owner address")
        return 1

    if created:
        print(f"✅ Created {args.email}")
    else:
        print(f"⚠️ {args.email} already exists")
    return 0


if __name__ == "__main__":
    sys.exit(main())
