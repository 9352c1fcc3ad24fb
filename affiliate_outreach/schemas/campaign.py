"""
Campaign schemas.
"""
import uuid
from typing import Optional, Dict
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class CampaignCreate(BaseModel):
    """Create a new campaign."""
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "Phone repair creators Q1",
                "minFollowers": 10000,
                "maxFollowers": 100000,
                "minGMV": 1000,
                "category": "electronics",
                "targetInvitations": 25
            }
        },
    )

    name: str = Field(min_length=1)
    min_followers: int = Field(1000, ge=0, alias="minFollowers")
    max_followers: int = Field(100000, ge=0, alias="maxFollowers")
    min_gmv: float = Field(1000.0, ge=0, alias="minGMV")
    category: Optional[str] = "electronics"
    target_invitations: int = Field(10, ge=0, alias="targetInvitations")


class CampaignResponse(BaseModel):
    """Campaign response."""
    id: uuid.UUID
    name: str
    status: str
    min_followers: int
    max_followers: int
    min_gmv: float
    category: Optional[str]
    target_invitations: int
    target_creator_count: int
    sent_invitations: int
    successful_invitations: int
    failed_invitations: int
    started_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class CampaignStartResponse(BaseModel):
    """Returned as soon as the campaign is running; dispatch continues in the background."""
    message: str = "Campaign started"
    campaign_id: uuid.UUID
    target_creators: int


class DispatchStatusResponse(BaseModel):
    """Background dispatch task state."""
    campaign_id: uuid.UUID
    state: str  # unknown, running, completed, failed
    error: Optional[str] = None


class CampaignAnalytics(BaseModel):
    """
    Campaign analytics.
    Simulated deliveries are reported apart from confirmed ones.
    """
    campaign: CampaignResponse
    stats: Dict[str, int]
    simulated: int
    confirmed_sent: int
