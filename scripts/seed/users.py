#!/usr/bin/env python3
"""
Seed the demo canteen users (four students and the owner).

Creates tables first when they are missing. Idempotent: existing emails are
left untouched.
"""

import asyncio
import os
import sys

# Add project root to path
project_root = os.path.dirname(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
)
sys.path.insert(0, project_root)

from libs.common.logging import configure_logging
from libs.db.base import Base
from libs.db.config import AsyncSessionLocal, engine
from services.canteen_service.seed import demo_users, seed_users


async def main() -> None:
    configure_logging()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        created = await seed_users(session)

    await engine.dispose()
    print(f"✅ Seeded {created} new users")
    for email, full_name in demo_users():
        print(f"   {full_name:<16} {email}")


if __name__ == "__main__":
    asyncio.run(main())
