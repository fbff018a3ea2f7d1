"""Script to create the schema directly from the table metadata.

Use ``alembic upgrade head`` for managed databases; this is for local
throwaway databases.
"""

import asyncio

from sqlalchemy import text

from clinic.database import DATABASE_URL, engine
from clinic.models import metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        if DATABASE_URL.startswith("postgresql"):
            await conn.execute(text('CREATE EXTENSION IF NOT EXISTS "pgcrypto"'))

        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
