"""
Token repository for provider access tokens.
"""
from typing import Optional
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.models.token import AuthToken
from affiliate_outreach.repositories.base import BaseRepository


class AuthTokenRepository(BaseRepository[AuthToken]):
    """Repository for AuthToken operations. Rows are only ever appended."""

    def __init__(self, session: AsyncSession):
        super().__init__(AuthToken, session)

    async def append(
        self,
        access_token: str,
        expires_at: datetime,
        created_at: datetime,
        refresh_token: Optional[str] = None,
        advertiser_id: Optional[str] = None
    ) -> AuthToken:
        """Insert a new token row."""
        token = AuthToken(
            access_token=access_token,
            refresh_token=refresh_token,
            advertiser_id=advertiser_id,
            created_at=created_at,
            expires_at=expires_at
        )
        self.session.add(token)
        await self.commit("save auth token")
        await self.refresh(token, "save auth token")
        return token

    async def get_latest_unexpired(self, now: datetime) -> Optional[AuthToken]:
        """Most recently issued token that has not expired at `now`."""
        query = (
            select(AuthToken)
            .where(AuthToken.expires_at > now)
            .order_by(AuthToken.created_at.desc())
            .limit(1)
        )
        result = await self.session.exec(query)
        return result.first()
