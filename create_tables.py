"""
Script to create all database tables.

This script creates all tables defined in the models.
Prefer `alembic upgrade head` outside local development.
"""
import asyncio
from hookrelay.database import engine
from hookrelay.models.base import Base
from hookrelay.models.webhook import WebhookRecord  # noqa: F401


async def create_all_tables():
    """Create all tables in the database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("All tables created successfully!")


async def drop_all_tables():
    """Drop all tables in the database (for testing)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    print("All tables dropped!")


async def main():
    """Main entry point."""
    print("Creating database tables...")
    await create_all_tables()
    await engine.dispose()
    print("Done!")


if __name__ == "__main__":
    asyncio.run(main())
