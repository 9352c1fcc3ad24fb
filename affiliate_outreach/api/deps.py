"""
API dependencies - shared across all routes.
"""
from typing import AsyncIterator, Callable

from fastapi import Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.database import get_session, async_session
from affiliate_outreach.config import settings
from affiliate_outreach.core.tasks import DispatchRegistry, dispatch_registry
from affiliate_outreach.services.apify_service import ApifyCreatorScraper
from affiliate_outreach.services.discovery_service import DiscoverySourceChain, build_discovery_chain
from affiliate_outreach.services.integrations.tiktok import TikTokAPIClient, TikTokConfig
from affiliate_outreach.services.token_store import TokenStore


def get_tiktok_config() -> TikTokConfig:
    return TikTokConfig.from_settings()


async def get_tiktok_client(
    session: AsyncSession = Depends(get_session),
    config: TikTokConfig = Depends(get_tiktok_config)
) -> AsyncIterator[TikTokAPIClient]:
    """TikTok client carrying the current token (or none; calls then raise AuthUnavailableError)."""
    token = await TokenStore(session).get_valid_token()
    client = TikTokAPIClient(config, token.access_token if token else None)
    try:
        yield client
    finally:
        await client.close()


def get_discovery_chain(client: TikTokAPIClient = Depends(get_tiktok_client)) -> DiscoverySourceChain:
    """Default chain; page scraping only when an Apify token is configured."""
    scraper = ApifyCreatorScraper() if settings.APIFY_API_TOKEN else None
    return build_discovery_chain(client, scraper)


def get_dispatch_registry() -> DispatchRegistry:
    return dispatch_registry


def get_session_factory() -> Callable:
    """Session factory for background work that outlives the request."""
    return async_session
