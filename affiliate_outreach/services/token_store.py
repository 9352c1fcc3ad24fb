"""
Token store - the current provider credential.
Append-only: saving never overwrites, reading picks the newest unexpired token.
"""
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.config import settings
from affiliate_outreach.core.clock import utcnow
from affiliate_outreach.core.exceptions import AuthUnavailableError, InvalidTokenPayloadError
from affiliate_outreach.models.token import AuthToken
from affiliate_outreach.repositories.token_repo import AuthTokenRepository

logger = logging.getLogger(__name__)


def extract_token_payload(response_json: Any) -> Dict[str, Any]:
    """
    Unwrap a token exchange response.
    The provider answers either {"data": {...token...}} or the bare token object.
    """
    if not isinstance(response_json, dict):
        raise InvalidTokenPayloadError("Token response is not a JSON object")
    data = response_json.get("data")
    if isinstance(data, dict) and data:
        return data
    return response_json


def _ttl_seconds(raw: Any, default: int) -> int:
    try:
        ttl = int(raw)
    except (TypeError, ValueError):
        return default
    return ttl if ttl > 0 else default


class TokenStore:
    """Service for reading and appending provider access tokens."""

    def __init__(
        self,
        session: AsyncSession,
        default_ttl_seconds: int = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.token_repo = AuthTokenRepository(session)
        self.default_ttl_seconds = default_ttl_seconds or settings.TOKEN_DEFAULT_TTL_SECONDS
        self.clock = clock

    async def get_valid_token(self) -> Optional[AuthToken]:
        """Newest token with expires_at in the future, or None."""
        return await self.token_repo.get_latest_unexpired(self.clock())

    async def require_access_token(self) -> str:
        """Access token string for remote calls; raises AuthUnavailableError when none is valid."""
        token = await self.get_valid_token()
        if token is None:
            raise AuthUnavailableError()
        return token.access_token

    async def save_token(self, payload: Dict[str, Any]) -> AuthToken:
        """
        Append a token from a credential exchange payload.

        Args:
            payload: {"access_token": str, "refresh_token"?: str,
                      "expires_in"?: int, "advertiser_id"?: str}

        Raises:
            InvalidTokenPayloadError: no usable access_token; nothing is stored.
        """
        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(access_token, str) or not access_token.strip():
            raise InvalidTokenPayloadError()

        ttl = _ttl_seconds(payload.get("expires_in"), self.default_ttl_seconds)
        now = self.clock()
        expires_at = now + timedelta(seconds=ttl)

        logger.info(
            f"Saving token (refresh_token={'yes' if payload.get('refresh_token') else 'no'}, "
            f"expires_in={payload.get('expires_in')}, expires_at={expires_at.isoformat()})"
        )

        advertiser_id = payload.get("advertiser_id")
        return await self.token_repo.append(
            access_token=access_token,
            refresh_token=payload.get("refresh_token") or None,
            advertiser_id=str(advertiser_id) if advertiser_id else None,
            created_at=now,
            expires_at=expires_at
        )
