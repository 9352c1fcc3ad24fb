"""
Shared test fixtures.

Repository and service tests run against a throwaway SQLite file through
aiosqlite; every test gets a fresh database.
"""
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach import models  # noqa: F401  registers tables
from affiliate_outreach.models.creator import Creator
from affiliate_outreach.schemas.campaign import CampaignCreate
from affiliate_outreach.services.campaign_service import CampaignStateMachine
from affiliate_outreach.services.invitation_dispatcher import BrandProfile, DispatchConfig


# =============================================================================
# DATABASE
# =============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture
async def engine(database_url):
    engine = create_async_engine(database_url, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


# =============================================================================
# DOMAIN FIXTURES
# =============================================================================


@pytest.fixture
def brand() -> BrandProfile:
    return BrandProfile(
        name="Digi4u Repair UK",
        description="Professional mobile device repair services",
        website="https://digi4u-repair.co.uk",
        category="electronics"
    )


@pytest.fixture
def dispatch_config(brand) -> DispatchConfig:
    """No pacing, simulation off; tests opt in where needed."""
    return DispatchConfig(delay_seconds=0, simulation_enabled=False, brand=brand)


@pytest_asyncio.fixture
async def make_creator(session):
    """Insert a creator row directly."""
    async def _make(username: str, followers: int, gmv: float, category: str = "electronics", creator_id: str = None):
        creator = Creator(
            identity_key=creator_id or username.lstrip("@").lower(),
            creator_id=creator_id,
            username=username,
            follower_count=followers,
            gmv=gmv,
            category=category
        )
        session.add(creator)
        await session.commit()
        await session.refresh(creator)
        return creator
    return _make


@pytest_asyncio.fixture
async def make_campaign(session):
    """Create a draft campaign through the state machine."""
    async def _make(name: str = "Repair creators", **overrides):
        data = {
            "name": name,
            "min_followers": 10000,
            "max_followers": 100000,
            "min_gmv": 1000,
            "category": "electronics",
            "target_invitations": 10,
        }
        data.update(overrides)
        return await CampaignStateMachine(session).create(CampaignCreate(**data))
    return _make
