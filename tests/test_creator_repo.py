"""
Tests for CreatorRepository.
"""
import pytest

from helpers import candidate

from affiliate_outreach.core.exceptions import PersistenceFailureError
from affiliate_outreach.models.creator import Creator
from affiliate_outreach.repositories.creator_repo import CreatorRepository
from affiliate_outreach.schemas.creator import CreatorFilter


class TestUpsert:
    """Idempotent insert-or-refresh."""

    @pytest.mark.asyncio
    async def test_same_identity_keeps_one_row(self, session):
        """Second upsert refreshes numbers instead of inserting."""
        repo = CreatorRepository(session)

        first = await repo.upsert(candidate("@PhoneRepairPro_UK", 45000, 2500))
        second = await repo.upsert(candidate("@phonerepairpro_uk", 46000, 2700.5))

        assert await repo.count() == 1
        assert second.id == first.id
        assert second.follower_count == 46000
        assert second.gmv == 2700.5
        assert second.username == "@PhoneRepairPro_UK"

    @pytest.mark.asyncio
    async def test_provider_id_is_identity(self, session):
        """A provider id makes renamed handles the same creator."""
        repo = CreatorRepository(session)

        await repo.upsert(candidate("@old_handle", 20000, 1500, creator_id="9001"))
        await repo.upsert(candidate("@new_handle", 21000, 1600, creator_id="9001"))

        assert await repo.count() == 1

    @pytest.mark.asyncio
    async def test_refresh_keeps_known_values(self, session):
        """Fields the new sighting lacks are not wiped."""
        repo = CreatorRepository(session)

        await repo.upsert(candidate("@fixer", 20000, 1500, avatar_url="https://cdn/a.jpg"))
        updated = await repo.upsert(candidate("@fixer", 22000, 1500))

        assert updated.avatar_url == "https://cdn/a.jpg"
        assert updated.updated_at >= updated.created_at

    @pytest.mark.asyncio
    async def test_database_errors_become_persistence_failures(self, engine, session):
        """A failing lookup surfaces as PersistenceFailureError, not a raw driver error."""
        async with engine.begin() as conn:
            await conn.run_sync(Creator.__table__.drop)

        with pytest.raises(PersistenceFailureError):
            await CreatorRepository(session).upsert(candidate("@fixer", 20000, 2000))


class TestFindEligible:
    """Eligibility query used when a campaign starts."""

    @pytest.mark.asyncio
    async def test_orders_by_gmv_then_followers(self, session, make_creator):
        await make_creator("@mid", 30000, 2500)
        await make_creator("@top", 20000, 6000)
        await make_creator("@tie_small", 15000, 2500)
        await make_creator("@too_small", 500, 9000)
        await make_creator("@low_gmv", 50000, 100)

        f = CreatorFilter(min_followers=10000, max_followers=100000, category="all", min_gmv=1000)
        creators = await CreatorRepository(session).find_eligible(f, limit=10)

        assert [c.username for c in creators] == ["@top", "@mid", "@tie_small"]

    @pytest.mark.asyncio
    async def test_applies_limit(self, session, make_creator):
        for i in range(5):
            await make_creator(f"@creator{i}", 20000, 1000 + i)

        f = CreatorFilter(min_followers=0, max_followers=100000, category="", min_gmv=0)
        creators = await CreatorRepository(session).find_eligible(f, limit=2)

        assert [c.username for c in creators] == ["@creator4", "@creator3"]

    @pytest.mark.asyncio
    async def test_zero_limit_returns_nothing(self, session, make_creator):
        await make_creator("@fixer", 20000, 2000)
        f = CreatorFilter(min_followers=0, max_followers=100000, category="all", min_gmv=0)

        assert await CreatorRepository(session).find_eligible(f, limit=0) == []

    @pytest.mark.asyncio
    async def test_category_matches_like_the_filter(self, session, make_creator):
        """Case-insensitive substring in either direction."""
        await make_creator("@consumer", 20000, 2000, category="Consumer Electronics")
        await make_creator("@short", 20000, 2000, category="electronic")
        await make_creator("@gamer", 20000, 2000, category="gaming")

        f = CreatorFilter(min_followers=0, max_followers=100000, category="Electronics", min_gmv=0)
        creators = await CreatorRepository(session).find_eligible(f, limit=10)

        assert {c.username for c in creators} == {"@consumer", "@short"}
        assert all(f.matches_category(c.category) for c in creators)

    @pytest.mark.asyncio
    async def test_like_wildcards_in_category_are_literal(self, session, make_creator):
        """'_' and '%' match only themselves, in either direction."""
        await make_creator("@dash", 20000, 2000, category="tech-repair")
        await make_creator("@underscore", 20000, 2000, category="tech_repair_uk")
        await make_creator("@percent", 20000, 2000, category="100%")

        f = CreatorFilter(min_followers=0, max_followers=100000, category="tech_repair", min_gmv=0)
        creators = await CreatorRepository(session).find_eligible(f, limit=10)

        assert [c.username for c in creators] == ["@underscore"]
        assert not f.matches_category("tech-repair")

        reverse = CreatorFilter(min_followers=0, max_followers=100000, category="1000", min_gmv=0)
        assert await CreatorRepository(session).find_eligible(reverse, limit=10) == []
