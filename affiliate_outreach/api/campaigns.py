"""
Campaigns API routes.
"""
import uuid
from typing import Callable

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.database import get_session
from affiliate_outreach.api.deps import get_dispatch_registry, get_session_factory
from affiliate_outreach.core.tasks import DispatchRegistry
from affiliate_outreach.schemas.campaign import (
    CampaignCreate,
    CampaignResponse,
    CampaignStartResponse,
    DispatchStatusResponse,
    CampaignAnalytics,
)
from affiliate_outreach.services.campaign_service import CampaignStateMachine
from affiliate_outreach.services.invitation_dispatcher import dispatch_campaign

router = APIRouter(prefix="/api/campaigns", tags=["campaigns"])
analytics_router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.post("", response_model=CampaignResponse, status_code=201)
async def create_campaign(
    campaign_data: CampaignCreate,
    session: AsyncSession = Depends(get_session)
):
    """Create a new campaign in draft."""
    return await CampaignStateMachine(session).create(campaign_data)


@router.get("/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(
    campaign_id: uuid.UUID,
    session: AsyncSession = Depends(get_session)
):
    """Get a campaign by ID."""
    return await CampaignStateMachine(session).get(campaign_id)


@router.post("/{campaign_id}/start", response_model=CampaignStartResponse)
async def start_campaign(
    campaign_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    registry: DispatchRegistry = Depends(get_dispatch_registry),
    session_factory: Callable = Depends(get_session_factory)
):
    """
    Start a draft campaign.
    Returns immediately; invitations are sent in the background.
    """
    campaign, targets = await CampaignStateMachine(session).start(campaign_id)
    registry.submit(campaign.id, dispatch_campaign(campaign.id, targets, session_factory))
    return CampaignStartResponse(campaign_id=campaign.id, target_creators=len(targets))


@router.get("/{campaign_id}/dispatch", response_model=DispatchStatusResponse)
async def dispatch_status(
    campaign_id: uuid.UUID,
    registry: DispatchRegistry = Depends(get_dispatch_registry)
):
    """Background dispatch state for a campaign."""
    status = registry.status(campaign_id)
    return DispatchStatusResponse(campaign_id=campaign_id, state=status["state"], error=status["error"])


@analytics_router.get("/campaigns/{campaign_id}", response_model=CampaignAnalytics)
async def campaign_analytics(
    campaign_id: uuid.UUID,
    session: AsyncSession = Depends(get_session)
):
    """Campaign with invitation counts by status."""
    return await CampaignStateMachine(session).analytics(campaign_id)
