"""Script to initialize the database without running migrations."""

import asyncio

from sqlalchemy import text

from clinicbook.config import settings
from clinicbook.database import engine
from clinicbook.models import metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        if not settings.is_sqlite:
            # gen_random_uuid() for rows inserted outside the application
            await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
