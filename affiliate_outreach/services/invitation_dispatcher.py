"""
Invitation dispatch - sends a running campaign's invitations one creator at a time.

Each creator goes through the delivery channels in order (collaboration invite,
direct message, then simulation when enabled). The first channel that succeeds
decides the outcome; if none does, the invitation fails with the last error.
"""
import asyncio
import random
import uuid
import logging
from typing import List, Optional, Callable, Awaitable, Dict, Any

from pydantic import BaseModel

from affiliate_outreach.config import settings
from affiliate_outreach.core.exceptions import AffiliateOutreachException, ChannelUnavailableError
from affiliate_outreach.models.campaign import Campaign
from affiliate_outreach.models.creator import Creator
from affiliate_outreach.services.campaign_service import CampaignStateMachine
from affiliate_outreach.services.integrations.base import DeliveryChannel
from affiliate_outreach.services.integrations.tiktok import TikTokAPIClient, TikTokConfig
from affiliate_outreach.services.token_store import TokenStore

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

class BrandProfile(BaseModel):
    """Brand presented to creators."""
    name: str
    description: str
    website: str
    category: str

    def to_brand_info(self) -> Dict[str, Any]:
        return {
            "brand_name": self.name,
            "brand_description": self.description,
            "website": self.website,
            "category": self.category
        }


class DispatchConfig(BaseModel):
    """Dispatch pacing, simulation and brand settings."""
    delay_seconds: float = 2.0
    channel_timeout: float = 30.0
    simulation_enabled: bool = True
    simulated_success_rate: float = 0.75
    simulation_seed: Optional[int] = None
    brand: BrandProfile

    @classmethod
    def from_settings(cls) -> "DispatchConfig":
        return cls(
            delay_seconds=settings.DISPATCH_DELAY_SECONDS,
            simulation_enabled=settings.SIMULATED_DELIVERY_ENABLED,
            simulated_success_rate=settings.SIMULATED_SUCCESS_RATE,
            simulation_seed=settings.SIMULATION_SEED,
            brand=BrandProfile(
                name=settings.BRAND_NAME,
                description=settings.BRAND_DESCRIPTION,
                website=settings.BRAND_WEBSITE,
                category=settings.BRAND_CATEGORY
            )
        )


def render_invitation_message(creator: Creator, brand: BrandProfile) -> str:
    """Invitation text addressed to the creator's display name (or handle)."""
    greeting = creator.display_name or creator.username
    return (
        f"Hi {greeting}!\n\n"
        f"We're {brand.name}, {brand.description.lower()}, and we'd love to collaborate with you!\n\n"
        "What we offer:\n"
        "- Competitive affiliate commissions\n"
        "- A professional brand partnership\n"
        "- UK-based service with an excellent reputation\n\n"
        "Would you be interested in promoting our services to your audience? "
        "We think your content style would be a great fit for our brand.\n\n"
        f"Best regards,\n{brand.name} Team\n{brand.website}"
    )


# =============================================================================
# CHANNELS
# =============================================================================

class CollaborationInviteChannel(DeliveryChannel):
    """Creator Marketplace collaboration invitation."""

    name = "collaboration_invite"

    def __init__(self, client: TikTokAPIClient, brand: BrandProfile):
        self.client = client
        self.brand = brand

    async def deliver(self, creator: Creator, campaign_id: uuid.UUID) -> None:
        if not creator.creator_id:
            raise ChannelUnavailableError(self.name, "creator has no marketplace id")
        await self.client.send_collaboration_invite(
            creator.creator_id,
            render_invitation_message(creator, self.brand),
            self.brand.to_brand_info()
        )


class DirectMessageChannel(DeliveryChannel):
    """Creator API direct message."""

    name = "direct_message"

    def __init__(self, client: TikTokAPIClient, brand: BrandProfile):
        self.client = client
        self.brand = brand

    async def deliver(self, creator: Creator, campaign_id: uuid.UUID) -> None:
        if not creator.creator_id:
            raise ChannelUnavailableError(self.name, "creator has no user id")
        await self.client.send_direct_message(
            creator.creator_id,
            render_invitation_message(creator, self.brand),
            self.brand.name
        )


class SimulationChannel(DeliveryChannel):
    """
    Stand-in delivery used when no real channel gets through.
    Outcomes are flagged as simulated and never counted as confirmed deliveries.
    """

    name = "simulation"
    simulated = True

    def __init__(self, success_rate: float = 0.75, seed: Optional[int] = None):
        self.success_rate = success_rate
        self.seed = seed

    def _rng(self, creator: Creator, campaign_id: uuid.UUID) -> random.Random:
        """Same campaign, creator and seed always give the same draw."""
        return random.Random(f"{self.seed or 0}:{campaign_id}:{creator.identity_key}")

    async def deliver(self, creator: Creator, campaign_id: uuid.UUID) -> None:
        if self._rng(creator, campaign_id).random() >= self.success_rate:
            raise ChannelUnavailableError(self.name, "simulated delivery failure")


def build_delivery_channels(client: TikTokAPIClient, config: DispatchConfig) -> List[DeliveryChannel]:
    channels: List[DeliveryChannel] = [
        CollaborationInviteChannel(client, config.brand),
        DirectMessageChannel(client, config.brand),
    ]
    if config.simulation_enabled:
        channels.append(SimulationChannel(config.simulated_success_rate, config.simulation_seed))
    return channels


# =============================================================================
# DISPATCHER
# =============================================================================

class DeliveryOutcome(BaseModel):
    success: bool
    channel: Optional[str] = None
    simulated: bool = False
    error: Optional[str] = None


class InvitationDispatcher:
    """
    Sequential sender for one campaign.
    Uses its own session; never the session of the request that started the campaign.
    """

    def __init__(
        self,
        session_factory: Callable,
        channels: List[DeliveryChannel],
        config: DispatchConfig,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.session_factory = session_factory
        self.channels = channels
        self.config = config
        self.sleep = sleep

    async def deliver(self, creator: Creator, campaign_id: uuid.UUID) -> DeliveryOutcome:
        """Try each channel in order; channel errors never escape."""
        last_error = "no delivery channel configured"
        last_channel = None

        for channel in self.channels:
            last_channel = channel.name
            try:
                await asyncio.wait_for(channel.deliver(creator, campaign_id), timeout=self.config.channel_timeout)
            except asyncio.TimeoutError:
                last_error = f"{channel.name} timed out after {self.config.channel_timeout}s"
                logger.warning(f"{last_error} for {creator.username}")
                continue
            except AffiliateOutreachException as e:
                last_error = e.message
                logger.info(f"{channel.name} failed for {creator.username}: {e.message}")
                continue
            except Exception as e:
                last_error = f"{channel.name} error: {type(e).__name__}: {e}"
                logger.error(f"Unexpected {last_error} for {creator.username}", exc_info=True)
                continue

            return DeliveryOutcome(success=True, channel=channel.name, simulated=channel.simulated)

        return DeliveryOutcome(success=False, channel=last_channel, error=last_error)

    async def run(self, campaign_id: uuid.UUID, creators: List[Creator]) -> Campaign:
        """
        Invite every creator in order, then complete the campaign.

        Persistence failures propagate and abort the run, leaving the campaign running.
        """
        logger.info(f"Dispatching {len(creators)} invitations for campaign {campaign_id}")

        async with self.session_factory() as session:
            machine = CampaignStateMachine(session)

            for creator in creators:
                await self.sleep(self.config.delay_seconds)

                invitation = await machine.open_invitation(campaign_id, creator.id)
                if invitation is None:
                    continue

                outcome = await self.deliver(creator, campaign_id)
                await machine.record_outcome(
                    invitation,
                    success=outcome.success,
                    channel=outcome.channel,
                    simulated=outcome.simulated,
                    error=outcome.error
                )

                if outcome.success:
                    label = " (simulated)" if outcome.simulated else ""
                    logger.info(f"Invitation sent to {creator.username} via {outcome.channel}{label}")
                else:
                    logger.warning(f"Failed to send invitation to {creator.username}: {outcome.error}")

            return await machine.complete(campaign_id)


async def dispatch_campaign(
    campaign_id: uuid.UUID,
    creators: List[Creator],
    session_factory: Callable,
    config: Optional[DispatchConfig] = None,
    tiktok_config: Optional[TikTokConfig] = None
) -> Campaign:
    """Background entry point: resolve the token, build the channels, run the dispatcher."""
    config = config or DispatchConfig.from_settings()

    async with session_factory() as session:
        token = await TokenStore(session).get_valid_token()
    if token is None:
        logger.warning(f"No valid TikTok token for campaign {campaign_id}; remote channels will be skipped")

    client = TikTokAPIClient(tiktok_config or TikTokConfig.from_settings(), token.access_token if token else None)
    try:
        dispatcher = InvitationDispatcher(session_factory, build_delivery_channels(client, config), config)
        return await dispatcher.run(campaign_id, creators)
    finally:
        await client.close()
