"""
OAuth state helpers.
The state issued with an authorization URL is kept in a cookie and must come
back unchanged on the callback.
"""
import secrets
from typing import Optional

OAUTH_STATE_COOKIE = "tiktok_oauth_state"
OAUTH_STATE_MAX_AGE = 600  # seconds


def generate_state(length: int = 16) -> str:
    """Generate a random, URL-safe OAuth state value."""
    return secrets.token_urlsafe(length)


def state_matches(expected: Optional[str], received: Optional[str]) -> bool:
    """Constant-time comparison; a missing value never matches."""
    if not expected or not received:
        return False
    return secrets.compare_digest(expected, received)
