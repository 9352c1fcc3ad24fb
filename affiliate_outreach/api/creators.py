"""
Creators API routes - discovery, listing and provider analytics.
"""

from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.database import get_session
from affiliate_outreach.core.clock import utcnow
from affiliate_outreach.api.deps import get_discovery_chain, get_tiktok_client
from affiliate_outreach.schemas.creator import CreatorFilter, DiscoverResponse, CreatorListResponse, CreatorResponse
from affiliate_outreach.services.discovery_service import CreatorDiscoveryService, DiscoverySourceChain
from affiliate_outreach.services.integrations.tiktok import TikTokAPIClient

router = APIRouter(prefix="/api/creators", tags=["creators"])


@router.post("/discover", response_model=DiscoverResponse)
async def discover_creators(
    filters: CreatorFilter,
    chain: DiscoverySourceChain = Depends(get_discovery_chain),
    session: AsyncSession = Depends(get_session)
):
    """Discover creators matching the filter; never fails for lack of sources."""
    discovery_service = CreatorDiscoveryService(session, chain)
    return await discovery_service.discover(filters)


@router.get("", response_model=CreatorListResponse)
async def list_creators(session: AsyncSession = Depends(get_session)):
    """Known creators, best GMV first."""
    discovery_service = CreatorDiscoveryService(session)
    creators = await discovery_service.list_creators()
    return CreatorListResponse(creators=[CreatorResponse.model_validate(c) for c in creators])


@router.get("/{creator_id}/analytics")
async def creator_analytics(
    creator_id: str,
    client: TikTokAPIClient = Depends(get_tiktok_client)
):
    """Creator API analytics for a provider creator id."""
    analytics = await client.get_creator_analytics(creator_id)
    return {
        "creator_id": creator_id,
        "analytics": analytics,
        "last_updated": utcnow().isoformat()
    }
