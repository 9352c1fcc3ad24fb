"""
Creator repository with idempotent upsert and eligibility search.
"""
from typing import List

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func, literal
from sqlalchemy.exc import SQLAlchemyError

from affiliate_outreach.core.clock import utcnow
from affiliate_outreach.core.exceptions import PersistenceFailureError
from affiliate_outreach.models.creator import Creator
from affiliate_outreach.repositories.base import BaseRepository
from affiliate_outreach.schemas.creator import CreatorCandidate, CreatorFilter


def _escape_like(expr):
    """Escape LIKE wildcards in a column expression, using '/' as the escape character."""
    for char in ("/", "%", "_"):
        expr = func.replace(expr, char, f"/{char}")
    return expr


class CreatorRepository(BaseRepository[Creator]):
    """Repository for Creator operations."""

    # Fields refreshed when an already-known creator is discovered again
    REFRESHED_FIELDS = ("follower_count", "gmv", "category", "display_name", "profile_url", "avatar_url")

    def __init__(self, session: AsyncSession):
        super().__init__(Creator, session)

    async def upsert(self, candidate: CreatorCandidate) -> Creator:
        """
        Insert a new creator or refresh an existing one by identity key.
        Safe to repeat with the same identity: never creates a second row.
        """
        key = candidate.identity_key
        try:
            creator = await self.get_by_field("identity_key", key)
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise PersistenceFailureError(f"read creator {key}", str(e)) from e

        if creator is None:
            creator = Creator(
                identity_key=key,
                creator_id=candidate.creator_id,
                username=candidate.username,
                display_name=candidate.display_name,
                follower_count=candidate.follower_count,
                gmv=candidate.gmv,
                category=candidate.category,
                region=candidate.region,
                profile_url=candidate.profile_url,
                avatar_url=candidate.avatar_url
            )
        else:
            for field in self.REFRESHED_FIELDS:
                value = getattr(candidate, field)
                if value is not None:
                    setattr(creator, field, value)
            creator.updated_at = utcnow()

        self.session.add(creator)
        await self.commit(f"upsert creator {key}")
        await self.refresh(creator, f"upsert creator {key}")
        return creator

    async def find_eligible(self, filters: CreatorFilter, limit: int) -> List[Creator]:
        """
        Creators matching the filter, best GMV first then largest audience.
        Category matching mirrors CreatorFilter.matches_category.
        """
        if limit <= 0:
            return []

        query = select(Creator).where(
            Creator.follower_count >= filters.min_followers,
            Creator.follower_count <= filters.max_followers,
            Creator.gmv >= filters.min_gmv
        )

        if not filters.category_is_wildcard:
            wanted = filters.category.strip().lower()
            actual = func.lower(func.trim(Creator.category))
            query = query.where(
                Creator.category.is_not(None),
                or_(
                    actual.contains(wanted, autoescape=True),
                    literal(wanted).like(literal("%") + _escape_like(actual) + literal("%"), escape="/")
                )
            )

        query = query.order_by(Creator.gmv.desc(), Creator.follower_count.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()

    async def list_ranked(self) -> List[Creator]:
        """All creators ordered by GMV then followers, descending."""
        query = select(Creator).order_by(Creator.gmv.desc(), Creator.follower_count.desc())
        result = await self.session.exec(query)
        return result.all()
