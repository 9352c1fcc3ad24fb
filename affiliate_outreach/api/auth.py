"""
TikTok OAuth routes.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.database import get_session
from affiliate_outreach.api.deps import get_tiktok_client
from affiliate_outreach.core.exceptions import ExternalServiceError, InvalidTokenPayloadError
from affiliate_outreach.core.security import (
    OAUTH_STATE_COOKIE,
    OAUTH_STATE_MAX_AGE,
    generate_state,
    state_matches,
)
from affiliate_outreach.schemas.auth import AuthUrlResponse, AuthStatusResponse
from affiliate_outreach.services.integrations.tiktok import TikTokAPIClient
from affiliate_outreach.services.token_store import TokenStore, extract_token_payload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def _issue_state(response: Response) -> str:
    state = generate_state()
    response.set_cookie(OAUTH_STATE_COOKIE, state, max_age=OAUTH_STATE_MAX_AGE, httponly=True, samesite="lax")
    return state


@router.get("/auth/tiktok", response_model=AuthUrlResponse)
async def tiktok_business_auth(
    response: Response,
    client: TikTokAPIClient = Depends(get_tiktok_client)
):
    """Business API authorization URL."""
    state = _issue_state(response)
    return AuthUrlResponse(auth_url=client.get_business_auth_url(state), state=state)


@router.get("/auth/tiktok-creator", response_model=AuthUrlResponse)
async def tiktok_creator_auth(
    response: Response,
    client: TikTokAPIClient = Depends(get_tiktok_client)
):
    """Creator API authorization URL."""
    state = _issue_state(response)
    return AuthUrlResponse(auth_url=client.get_creator_auth_url(state), state=state)


@router.get("/oauth-callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    state: Optional[str] = None,
    client: TikTokAPIClient = Depends(get_tiktok_client),
    session: AsyncSession = Depends(get_session)
):
    """Exchange the authorization code and store the token."""
    expected = request.cookies.get(OAUTH_STATE_COOKIE)
    if not code or not state_matches(expected, state):
        logger.error("Invalid authorization code or state mismatch")
        return RedirectResponse("/?auth=error&reason=invalid_state", status_code=302)

    try:
        token_response = await client.exchange_code_for_token(code)
        await TokenStore(session).save_token(extract_token_payload(token_response))
    except (ExternalServiceError, InvalidTokenPayloadError) as e:
        logger.error(f"Token exchange failed: {e.message}")
        return RedirectResponse("/?auth=error&reason=token_exchange_failed", status_code=302)

    redirect = RedirectResponse("/?auth=success", status_code=302)
    redirect.delete_cookie(OAUTH_STATE_COOKIE)
    return redirect


@router.get("/api/auth/status", response_model=AuthStatusResponse)
async def auth_status(session: AsyncSession = Depends(get_session)):
    """Whether a valid TikTok token is stored."""
    token = await TokenStore(session).get_valid_token()
    return AuthStatusResponse(is_authenticated=token is not None)
