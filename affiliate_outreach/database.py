from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy import text
from .config import settings

# Create Async Engine
engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO, future=True)

# Session factory shared by request handlers and background dispatch
async_session = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def init_db():
    # Import models so they are registered with SQLModel metadata
    from affiliate_outreach import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def check_db(session: AsyncSession) -> bool:
    """Return True when the database answers a trivial query."""
    conn = await session.connection()
    await conn.execute(text("SELECT 1"))
    return True


async def get_session() -> AsyncSession:
    async with async_session() as session:
        yield session
