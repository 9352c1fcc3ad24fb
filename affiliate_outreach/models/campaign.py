"""
Campaign model - creator outreach campaigns.
Holds the targeting filter and the invitation counters.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from affiliate_outreach.core.clock import utcnow
from sqlalchemy import Column, Numeric


class CampaignStatus:
    DRAFT = "draft"
    RUNNING = "running"
    COMPLETED = "completed"


class Campaign(SQLModel, table=True):
    """
    Campaign entity - a brand's invitation run over a filtered creator set.
    Lifecycle is linear: draft -> running -> completed.
    """
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    
    # Basic info
    name: str = Field(index=True)
    status: str = Field(default=CampaignStatus.DRAFT, index=True)  # draft, running, completed
    
    # Targeting filter
    min_followers: int = Field(default=0)
    max_followers: int = Field(default=0)
    min_gmv: float = Field(default=0.0, sa_column=Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0))
    category: Optional[str] = None
    target_invitations: int = Field(default=0)
    
    # Snapshot size taken when the campaign started
    target_creator_count: int = Field(default=0)
    
    # Counters (sent = successful + failed once dispatch completes)
    sent_invitations: int = Field(default=0)
    successful_invitations: int = Field(default=0)
    failed_invitations: int = Field(default=0)
    
    # Scheduling
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    
    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
