"""
Auth schemas for the TikTok OAuth flow.
"""
from typing import Optional
from pydantic import BaseModel


class AuthUrlResponse(BaseModel):
    """Authorization URL the user visits to grant access."""
    auth_url: str
    state: str


class AuthStatusResponse(BaseModel):
    is_authenticated: bool


class ApiAccessStatus(BaseModel):
    business_api: bool = False
    creator_marketplace: bool = False
    creator_api: bool = False


class SystemStatusResponse(BaseModel):
    """Service status report."""
    server: str = "OK"
    database: str = "Unknown"
    tiktok_auth: bool = False
    api_access: ApiAccessStatus = ApiAccessStatus()
    timestamp: str
    error: Optional[str] = None
