"""
Provider access token model.
Append-only: every credential exchange adds a row, nothing is overwritten.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from affiliate_outreach.core.clock import utcnow


class AuthToken(SQLModel, table=True):
    """
    TikTok access token issued by the OAuth exchange.
    The newest unexpired row is the authoritative credential.
    """
    __tablename__ = "auth_token"
    
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    
    # OAuth tokens
    access_token: str
    refresh_token: Optional[str] = None
    advertiser_id: Optional[str] = None
    
    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, index=True)
    expires_at: datetime = Field(index=True)
