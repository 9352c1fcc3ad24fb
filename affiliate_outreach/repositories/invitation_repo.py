"""
Invitation repository.
"""
import uuid
from typing import Optional, Dict

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from affiliate_outreach.models.invitation import Invitation, InvitationStatus
from affiliate_outreach.repositories.base import BaseRepository


class InvitationRepository(BaseRepository[Invitation]):
    """Repository for Invitation operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Invitation, session)

    async def get_for_pair(self, campaign_id: uuid.UUID, creator_id: uuid.UUID) -> Optional[Invitation]:
        """Existing invitation for (campaign, creator), if any."""
        query = select(Invitation).where(
            Invitation.campaign_id == campaign_id,
            Invitation.creator_id == creator_id
        )
        result = await self.session.exec(query)
        return result.first()

    async def create_sending(self, campaign_id: uuid.UUID, creator_id: uuid.UUID) -> Invitation:
        """Create the invitation already picked up for sending."""
        return await self.create({
            "campaign_id": campaign_id,
            "creator_id": creator_id,
            "status": InvitationStatus.SENDING
        })

    async def count_by_status(self, campaign_id: uuid.UUID) -> Dict[str, int]:
        """Invitation counts grouped by status for a campaign."""
        query = (
            select(Invitation.status, func.count())
            .where(Invitation.campaign_id == campaign_id)
            .group_by(Invitation.status)
        )
        result = await self.session.exec(query)
        return {status: count for status, count in result.all()}

    async def count_simulated(self, campaign_id: uuid.UUID) -> int:
        """Sent invitations whose outcome came from the simulation channel."""
        return await self.count({
            "campaign_id": campaign_id,
            "status": InvitationStatus.SENT,
            "simulated": True
        })
