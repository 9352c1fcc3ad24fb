"""
Creator schemas - discovery filter and discovered creator candidates.
"""
import uuid
from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

WILDCARD_CATEGORIES = ("", "all")


def normalize_username(username: str) -> str:
    """Lowercase, trimmed, without the leading '@'."""
    return (username or "").strip().lstrip("@").strip().lower()


class CreatorFilter(BaseModel):
    """
    Targeting criteria shared by discovery and campaign start.
    Followers bounds are inclusive; category matches as a case-insensitive
    substring in either direction, or anything when empty / "all".
    """
    model_config = ConfigDict(populate_by_name=True)

    min_followers: int = Field(1000, ge=0, alias="minFollowers")
    max_followers: int = Field(100000, ge=0, alias="maxFollowers")
    category: str = "electronics"
    min_gmv: float = Field(1000.0, ge=0, alias="minGMV")

    @property
    def category_is_wildcard(self) -> bool:
        return (self.category or "").strip().lower() in WILDCARD_CATEGORIES

    def matches_category(self, category: Optional[str]) -> bool:
        if self.category_is_wildcard:
            return True
        if category is None:
            return False
        wanted = self.category.strip().lower()
        actual = category.strip().lower()
        return wanted in actual or actual in wanted

    def matches(self, candidate: "CreatorCandidate") -> bool:
        return (
            self.min_followers <= candidate.follower_count <= self.max_followers
            and candidate.gmv >= self.min_gmv
            and self.matches_category(candidate.category)
        )


class CreatorCandidate(BaseModel):
    """A creator as returned by a discovery strategy, before persistence."""
    username: str
    creator_id: Optional[str] = None
    display_name: Optional[str] = None
    follower_count: int = Field(0, ge=0)
    gmv: float = Field(0.0, ge=0)
    category: Optional[str] = None
    region: str = "GB"
    profile_url: Optional[str] = None
    avatar_url: Optional[str] = None
    source: Optional[str] = None  # name of the strategy that produced it

    @property
    def identity_key(self) -> str:
        if self.creator_id:
            return str(self.creator_id)
        return normalize_username(self.username)


class DiscoverResponse(BaseModel):
    """Discovery results, highest GMV first."""
    creators: List[CreatorCandidate]
    source: Optional[str] = None


class CreatorResponse(BaseModel):
    """Stored creator."""
    id: uuid.UUID
    identity_key: str
    creator_id: Optional[str]
    username: str
    display_name: Optional[str]
    follower_count: int
    gmv: float
    category: Optional[str]
    region: str
    profile_url: Optional[str]
    avatar_url: Optional[str]
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True


class CreatorListResponse(BaseModel):
    creators: List[CreatorResponse]
