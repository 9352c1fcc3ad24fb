"""
TikTok API integration.
Covers the Business API, the Creator Marketplace (TCM) API and the Creator API,
plus the OAuth code exchange.
"""
import logging
from datetime import date
from typing import Optional, Dict, Any, List
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from affiliate_outreach.config import settings
from affiliate_outreach.core.exceptions import (
    AuthUnavailableError,
    ChannelUnavailableError,
    ExternalServiceError,
)
from affiliate_outreach.schemas.creator import CreatorFilter

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================

class TikTokConfig(BaseModel):
    """TikTok API configuration."""
    app_id: str = ""
    app_secret: str = ""
    redirect_uri: str = "http://localhost:8000/oauth-callback"
    business_api_base: str = "https://business-api.tiktok.com/open_api/v1.3"
    tcm_api_base: str = "https://business-api.tiktok.com/open_api/v1.3/tcm"
    creator_api_base: str = "https://open.tiktokapis.com/v2"
    business_auth_url: str = "https://business-api.tiktok.com/portal/auth"
    creator_auth_url: str = "https://www.tiktok.com/v2/auth/authorize"
    creator_scopes: list = [
        "user.info.basic",
        "biz.creator.info",
        "biz.creator.insights",
        "video.list",
        "tcm.order.update",
        "tto.campaign.link",
    ]
    region: str = "GB"
    timeout_seconds: float = 15.0

    @classmethod
    def from_settings(cls) -> "TikTokConfig":
        return cls(
            app_id=settings.TIKTOK_APP_ID,
            app_secret=settings.TIKTOK_APP_SECRET,
            redirect_uri=settings.REDIRECT_URI,
            business_api_base=settings.BUSINESS_API_BASE,
            tcm_api_base=settings.TCM_API_BASE,
            creator_api_base=settings.CREATOR_API_BASE,
            business_auth_url=settings.BUSINESS_AUTH_URL,
            creator_auth_url=settings.CREATOR_AUTH_URL,
            region=settings.SHOP_REGION,
            timeout_seconds=settings.API_TIMEOUT_SECONDS,
        )


def is_success(payload: Any) -> bool:
    """
    Provider success check.
    Business/TCM responses carry {"code": 0}; Creator API responses carry
    {"error": {"code": "ok"}}. A body with neither carries no status and is
    not a success.
    """
    if not isinstance(payload, dict):
        return False
    if "code" in payload:
        return payload.get("code") == 0
    error = payload.get("error")
    if isinstance(error, dict):
        return error.get("code") in ("ok", 0)
    return False


# =============================================================================
# TIKTOK API CLIENT
# =============================================================================

class TikTokAPIClient:
    """
    TikTok API client.

    Every call either returns the decoded JSON of a successful response or
    raises ChannelUnavailableError (transport error, HTTP error status or a
    non-success provider code). Calls made without an access token raise
    AuthUnavailableError.
    """

    OAUTH_TOKEN_PATH = "/oauth2/access_token/"

    def __init__(
        self,
        config: TikTokConfig,
        access_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config
        self.access_token = access_token
        self.client = client or httpx.AsyncClient(timeout=config.timeout_seconds)

    # -------------------------------------------------------------------------
    # OAuth Flow
    # -------------------------------------------------------------------------

    def get_business_auth_url(self, state: str) -> str:
        """Business API authorization URL."""
        query = urlencode({
            "app_id": self.config.app_id,
            "state": state,
            "redirect_uri": self.config.redirect_uri,
        })
        return f"{self.config.business_auth_url}?{query}"

    def get_creator_auth_url(self, state: str) -> str:
        """Creator API authorization URL."""
        query = urlencode({
            "client_key": self.config.app_id,
            "scope": ",".join(self.config.creator_scopes),
            "response_type": "code",
            "redirect_uri": self.config.redirect_uri,
            "state": state,
        })
        return f"{self.config.creator_auth_url}?{query}"

    async def exchange_code_for_token(self, code: str) -> Dict[str, Any]:
        """
        Exchange an authorization code for an access token.
        Returns the raw response body; unwrap it with extract_token_payload.
        """
        try:
            response = await self.client.post(
                f"{self.config.business_api_base}{self.OAUTH_TOKEN_PATH}",
                json={
                    "app_id": self.config.app_id,
                    "secret": self.config.app_secret,
                    "auth_code": code
                }
            )
        except httpx.HTTPError as e:
            raise ExternalServiceError("TikTok token exchange", str(e)) from e

        if response.status_code != 200:
            raise ExternalServiceError("TikTok token exchange", response.text)
        return response.json()

    # -------------------------------------------------------------------------
    # Request helpers
    # -------------------------------------------------------------------------

    def _require_token(self) -> str:
        if not self.access_token:
            raise AuthUnavailableError()
        return self.access_token

    def _business_headers(self) -> Dict[str, str]:
        return {
            "Access-Token": self._require_token(),
            "Content-Type": "application/json"
        }

    def _creator_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._require_token()}",
            "Content-Type": "application/json"
        }

    async def _request(
        self,
        channel: str,
        url: str,
        headers: Dict[str, str],
        method: str = "GET",
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        try:
            response = await self.client.request(method, url, headers=headers, json=json, params=params)
        except httpx.HTTPError as e:
            logger.warning(f"{channel} request failed: {e}")
            raise ChannelUnavailableError(channel, str(e) or type(e).__name__) from e

        if response.status_code >= 400:
            logger.warning(f"{channel} returned HTTP {response.status_code}: {response.text[:200]}")
            raise ChannelUnavailableError(channel, f"HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise ChannelUnavailableError(channel, "invalid JSON response") from e

        if not is_success(payload):
            message = payload.get("message") if isinstance(payload, dict) else None
            raise ChannelUnavailableError(channel, message or "non-success response code")
        return payload

    async def business_request(self, endpoint: str, method: str = "GET", json: Optional[dict] = None,
                               params: Optional[dict] = None) -> Dict[str, Any]:
        return await self._request(
            "Business API", f"{self.config.business_api_base}{endpoint}",
            self._business_headers(), method, json, params
        )

    async def tcm_request(self, endpoint: str, method: str = "GET", json: Optional[dict] = None,
                          params: Optional[dict] = None) -> Dict[str, Any]:
        return await self._request(
            "Creator Marketplace API", f"{self.config.tcm_api_base}{endpoint}",
            self._business_headers(), method, json, params
        )

    async def creator_request(self, endpoint: str, method: str = "GET", json: Optional[dict] = None,
                              params: Optional[dict] = None) -> Dict[str, Any]:
        return await self._request(
            "Creator API", f"{self.config.creator_api_base}{endpoint}",
            self._creator_headers(), method, json, params
        )

    # -------------------------------------------------------------------------
    # Creator search
    # -------------------------------------------------------------------------

    async def search_creators(self, filters: CreatorFilter, page: int = 1, page_size: int = 20) -> List[Dict[str, Any]]:
        """Creator Marketplace structured search."""
        payload = await self.tcm_request("/creator/search", "POST", json={
            "page": page,
            "page_size": page_size,
            "filters": {
                "follower_count_min": filters.min_followers,
                "follower_count_max": filters.max_followers,
                "region": [self.config.region, "UK"] if self.config.region == "GB" else [self.config.region],
                "category": [filters.category],
                "engagement_rate_min": 0.02
            }
        })
        return (payload.get("data") or {}).get("creators") or []

    async def search_creators_legacy(self, filters: CreatorFilter, page: int = 1, page_size: int = 20) -> List[Dict[str, Any]]:
        """Business API creator discovery (older endpoint, query-string filters)."""
        payload = await self.business_request("/tcm/creator/discover/", "GET", params={
            "page": page,
            "page_size": page_size,
            "country_code": self.config.region,
            "min_followers": filters.min_followers,
            "max_followers": filters.max_followers,
            "industry": filters.category
        })
        data = payload.get("data") or {}
        return data.get("list") or data.get("creators") or []

    # -------------------------------------------------------------------------
    # Messaging
    # -------------------------------------------------------------------------

    async def send_collaboration_invite(
        self,
        creator_id: str,
        message: str,
        brand_info: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Creator Marketplace collaboration invitation."""
        return await self.tcm_request("/collaboration/invite", "POST", json={
            "creator_id": creator_id,
            "message": message,
            "collaboration_type": "affiliate",
            "brand_info": brand_info,
            "campaign_requirements": {
                "content_type": ["video"],
                "posting_schedule": "flexible",
                "content_guidelines": "Showcase the brand's services, before/after content preferred"
            }
        })

    async def send_direct_message(self, recipient_id: str, text: str, brand_name: str) -> Dict[str, Any]:
        """Creator API direct message."""
        return await self.creator_request("/direct_message/send", "POST", json={
            "recipient_user_id": recipient_id,
            "message_type": "collaboration_request",
            "content": {
                "text": text,
                "brand_name": brand_name
            }
        })

    # -------------------------------------------------------------------------
    # Analytics and access checks
    # -------------------------------------------------------------------------

    async def get_creator_analytics(self, creator_id: str, start_date: str = "2024-01-01",
                                    end_date: Optional[str] = None) -> Dict[str, Any]:
        payload = await self.creator_request("/creator/analytics", "GET", params={
            "creator_id": creator_id,
            "start_date": start_date,
            "end_date": end_date or date.today().isoformat(),
            "metrics": "video_views,profile_views,likes,shares,comments,follower_count"
        })
        return payload.get("data") or {}

    async def check_access(self) -> Dict[str, bool]:
        """Which provider APIs answer successfully with the current token."""
        access = {"business_api": False, "creator_marketplace": False, "creator_api": False}
        checks = (
            ("business_api", self.business_request("/advertiser/info/")),
            ("creator_marketplace", self.tcm_request("/creator/search", "POST", json={
                "page": 1, "page_size": 1, "filters": {"region": [self.config.region]}
            })),
            ("creator_api", self.creator_request("/creator/info/basic")),
        )
        for name, call in checks:
            try:
                await call
                access[name] = True
            except (ChannelUnavailableError, AuthUnavailableError) as e:
                logger.info(f"{name} access check failed: {e.message}")
        return access

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
