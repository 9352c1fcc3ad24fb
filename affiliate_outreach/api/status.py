"""
Status API routes - database, token and provider reachability.
"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.core.clock import utcnow
from affiliate_outreach.database import get_session, check_db
from affiliate_outreach.api.deps import get_tiktok_client
from affiliate_outreach.schemas.auth import SystemStatusResponse, ApiAccessStatus
from affiliate_outreach.services.integrations.tiktok import TikTokAPIClient
from affiliate_outreach.services.token_store import TokenStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["status"])


@router.get("/status", response_model=SystemStatusResponse)
async def api_status(
    client: TikTokAPIClient = Depends(get_tiktok_client),
    session: AsyncSession = Depends(get_session)
):
    """Check the database and, when authenticated, each TikTok API."""
    result = SystemStatusResponse(timestamp=utcnow().isoformat())

    try:
        await check_db(session)
        result.database = "Connected"
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database check failed: {str(e)}")
        result.database = "Error"
        result.error = "database unavailable"
        return result

    token = await TokenStore(session).get_valid_token()
    result.tiktok_auth = token is not None
    if token is not None:
        result.api_access = ApiAccessStatus(**await client.check_access())

    return result
