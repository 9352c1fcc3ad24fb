"""
Invitation model - one outreach attempt per (campaign, creator).
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field

from affiliate_outreach.core.clock import utcnow
from sqlalchemy import UniqueConstraint


class InvitationStatus:
    PENDING = "pending"
    SENDING = "sending"
    SENT = "sent"
    FAILED = "failed"


class Invitation(SQLModel, table=True):
    """
    Invitation sent to a creator as part of a campaign dispatch.
    Tracks which channel produced the outcome and whether it was simulated.
    """
    __table_args__ = (
        UniqueConstraint("campaign_id", "creator_id", name="uq_invitation_campaign_creator"),
    )
    
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    campaign_id: uuid.UUID = Field(foreign_key="campaign.id", index=True)
    creator_id: uuid.UUID = Field(foreign_key="creator.id", index=True)
    
    # Status
    status: str = Field(default=InvitationStatus.PENDING, index=True)  # pending, sending, sent, failed
    
    # Delivery tracking
    channel: Optional[str] = None  # collaboration_invite, direct_message, simulation
    simulated: bool = Field(default=False)
    error_message: Optional[str] = None
    
    sent_at: Optional[datetime] = None
    responded_at: Optional[datetime] = None
    
    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
