"""
Campaign repository.
"""
import uuid
from typing import Optional

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.models.campaign import Campaign
from affiliate_outreach.repositories.base import BaseRepository


class CampaignRepository(BaseRepository[Campaign]):
    """Repository for Campaign operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Campaign, session)

    async def get_for_update(self, campaign_id: uuid.UUID) -> Optional[Campaign]:
        """
        Load a campaign with a row lock, bypassing the identity map.
        Status checks and counter updates go through this so they see the latest row.
        """
        query = (
            select(Campaign)
            .where(Campaign.id == campaign_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(query)
        return result.first()
