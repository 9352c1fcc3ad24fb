"""
Creator model - discovered TikTok creators.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from affiliate_outreach.core.clock import utcnow
from sqlalchemy import Column, Numeric


class Creator(SQLModel, table=True):
    """
    Creator entity - one row per stable identity.
    identity_key is the provider creator_id when known, else the normalized username.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    identity_key: str = Field(unique=True, index=True)
    
    # Identity
    creator_id: Optional[str] = Field(default=None, index=True)  # provider id
    username: str = Field(index=True)
    display_name: Optional[str] = None
    
    # Metrics
    follower_count: int = Field(default=0, index=True)
    gmv: float = Field(default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0))
    
    # Profile
    category: Optional[str] = Field(default=None, index=True)
    region: str = Field(default="GB")
    profile_url: Optional[str] = None
    avatar_url: Optional[str] = None
    
    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
