"""
Campaign service - campaign lifecycle and invitation bookkeeping.
Lifecycle: draft -> running -> completed. Status checks and counter updates
run against a row-locked campaign so concurrent callers see one winner.
"""
import uuid
import logging
from typing import List, Optional, Tuple

from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.core.clock import utcnow
from affiliate_outreach.core.exceptions import CampaignNotFoundError, InvalidStateTransitionError
from affiliate_outreach.repositories.campaign_repo import CampaignRepository
from affiliate_outreach.repositories.creator_repo import CreatorRepository
from affiliate_outreach.repositories.invitation_repo import InvitationRepository
from affiliate_outreach.models.campaign import Campaign, CampaignStatus
from affiliate_outreach.models.creator import Creator
from affiliate_outreach.models.invitation import Invitation, InvitationStatus
from affiliate_outreach.schemas.campaign import CampaignCreate, CampaignAnalytics, CampaignResponse
from affiliate_outreach.schemas.creator import CreatorFilter

logger = logging.getLogger(__name__)


def campaign_filter(campaign: Campaign) -> CreatorFilter:
    """Targeting filter stored on a campaign."""
    return CreatorFilter(
        min_followers=campaign.min_followers,
        max_followers=campaign.max_followers,
        min_gmv=campaign.min_gmv,
        category=campaign.category or "",
    )


class CampaignStateMachine:
    """Service for campaign state transitions."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.campaign_repo = CampaignRepository(session)
        self.creator_repo = CreatorRepository(session)
        self.invitation_repo = InvitationRepository(session)

    async def create(self, campaign_data: CampaignCreate) -> Campaign:
        """Create a new campaign in draft."""
        campaign = await self.campaign_repo.create({
            "name": campaign_data.name,
            "status": CampaignStatus.DRAFT,
            "min_followers": campaign_data.min_followers,
            "max_followers": campaign_data.max_followers,
            "min_gmv": campaign_data.min_gmv,
            "category": campaign_data.category,
            "target_invitations": campaign_data.target_invitations,
        })
        logger.info(f"Campaign '{campaign.name}' created ({campaign.id})")
        return campaign

    async def get(self, campaign_id: uuid.UUID) -> Campaign:
        """Get a campaign by ID."""
        campaign = await self.campaign_repo.get(campaign_id)
        if not campaign:
            raise CampaignNotFoundError(str(campaign_id))
        return campaign

    async def _release(self):
        """End the transaction holding the row lock; nothing is pending here."""
        await self.campaign_repo.commit("release campaign lock")

    async def _lock(self, campaign_id: uuid.UUID) -> Campaign:
        campaign = await self.campaign_repo.get_for_update(campaign_id)
        if campaign is None:
            await self._release()
            raise CampaignNotFoundError(str(campaign_id))
        return campaign

    async def start(self, campaign_id: uuid.UUID) -> Tuple[Campaign, List[Creator]]:
        """
        Move a draft campaign to running and snapshot its target creators.

        Returns:
            The running campaign and the creators to invite, best GMV first.

        Raises:
            CampaignNotFoundError: unknown id.
            InvalidStateTransitionError: campaign is not a draft; nothing changes.
        """
        campaign = await self._lock(campaign_id)
        if campaign.status != CampaignStatus.DRAFT:
            current = campaign.status
            await self._release()
            raise InvalidStateTransitionError("Campaign", current, CampaignStatus.RUNNING)

        targets = await self.creator_repo.find_eligible(campaign_filter(campaign), campaign.target_invitations)

        now = utcnow()
        campaign.status = CampaignStatus.RUNNING
        campaign.target_creator_count = len(targets)
        campaign.started_at = now
        campaign.updated_at = now
        self.session.add(campaign)
        await self.campaign_repo.commit("start campaign")

        logger.info(f"Campaign {campaign_id} running with {len(targets)} target creators")
        return campaign, targets

    async def open_invitation(self, campaign_id: uuid.UUID, creator_id: uuid.UUID) -> Optional[Invitation]:
        """
        Create the invitation for a creator the dispatcher picked up.
        Returns None when this creator was already invited for the campaign; the
        creator then leaves the campaign's target count.
        """
        campaign = await self._lock(campaign_id)
        if campaign.status != CampaignStatus.RUNNING:
            current = campaign.status
            await self._release()
            raise InvalidStateTransitionError("Campaign", current, "invite")

        existing = await self.invitation_repo.get_for_pair(campaign_id, creator_id)
        if existing is not None:
            logger.info(f"Creator {creator_id} already invited for campaign {campaign_id}, skipping")
            campaign.target_creator_count = max(campaign.target_creator_count - 1, 0)
            campaign.updated_at = utcnow()
            self.session.add(campaign)
            await self.campaign_repo.commit("skip invited creator")
            return None

        return await self.invitation_repo.create_sending(campaign_id, creator_id)

    async def record_outcome(
        self,
        invitation: Invitation,
        success: bool,
        channel: Optional[str] = None,
        simulated: bool = False,
        error: Optional[str] = None
    ) -> Campaign:
        """Mark the invitation sent or failed and bump the campaign counters in one commit."""
        campaign = await self._lock(invitation.campaign_id)
        if campaign.status != CampaignStatus.RUNNING:
            current = campaign.status
            await self._release()
            raise InvalidStateTransitionError("Campaign", current, "record invitation outcome")

        now = utcnow()
        invitation.status = InvitationStatus.SENT if success else InvitationStatus.FAILED
        invitation.channel = channel
        invitation.simulated = simulated if success else False
        invitation.error_message = None if success else error
        invitation.sent_at = now if success else None
        invitation.updated_at = now

        campaign.sent_invitations += 1
        if success:
            campaign.successful_invitations += 1
        else:
            campaign.failed_invitations += 1
        campaign.updated_at = now

        self.session.add(invitation)
        self.session.add(campaign)
        await self.campaign_repo.commit("record invitation outcome")
        return campaign

    async def complete(self, campaign_id: uuid.UUID) -> Campaign:
        """Running -> completed, once every targeted creator has an outcome."""
        campaign = await self._lock(campaign_id)
        if campaign.status != CampaignStatus.RUNNING:
            current = campaign.status
            await self._release()
            raise InvalidStateTransitionError("Campaign", current, CampaignStatus.COMPLETED)

        if campaign.sent_invitations != campaign.target_creator_count:
            progress = f"running ({campaign.sent_invitations}/{campaign.target_creator_count} sent)"
            await self._release()
            raise InvalidStateTransitionError("Campaign", progress, CampaignStatus.COMPLETED)

        now = utcnow()
        campaign.status = CampaignStatus.COMPLETED
        campaign.completed_at = now
        campaign.updated_at = now
        self.session.add(campaign)
        await self.campaign_repo.commit("complete campaign")

        logger.info(
            f"Campaign {campaign_id} completed: {campaign.successful_invitations} successful, "
            f"{campaign.failed_invitations} failed"
        )
        return campaign

    async def analytics(self, campaign_id: uuid.UUID) -> CampaignAnalytics:
        """Campaign with invitation counts by status; simulated deliveries counted apart."""
        campaign = await self.get(campaign_id)
        stats = await self.invitation_repo.count_by_status(campaign_id)
        simulated = await self.invitation_repo.count_simulated(campaign_id)

        return CampaignAnalytics(
            campaign=CampaignResponse.model_validate(campaign),
            stats=stats,
            simulated=simulated,
            confirmed_sent=stats.get(InvitationStatus.SENT, 0) - simulated
        )
