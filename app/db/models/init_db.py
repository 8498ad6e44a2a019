"""Create every EduList table on the configured database.

Run with ``python -m app.db.models.init_db``; the app also calls
``create_all`` on startup when ``AUTO_CREATE_TABLES`` is enabled.
"""
import asyncio

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from app.db.models.database import Base
from app.db.session import engine


async def create_all(bind: AsyncEngine = engine) -> None:
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("🎉 Database schema is up to date")


if __name__ == "__main__":
    asyncio.run(create_all())
