"""
Test doubles for discovery strategies and delivery channels.
"""
import asyncio
from typing import List, Optional, Set

from affiliate_outreach.core.exceptions import ChannelUnavailableError
from affiliate_outreach.schemas.creator import CreatorCandidate, CreatorFilter
from affiliate_outreach.services.integrations.base import DiscoveryStrategy, DeliveryChannel


def candidate(username: str, followers: int, gmv: float, category: str = "electronics", **kwargs) -> CreatorCandidate:
    return CreatorCandidate(username=username, follower_count=followers, gmv=gmv, category=category, **kwargs)


class StubStrategy(DiscoveryStrategy):
    """Returns fixed candidates, raises, or hangs; counts calls."""

    def __init__(self, name: str, results: Optional[List[CreatorCandidate]] = None,
                 error: Optional[Exception] = None, hang: bool = False, timeout: float = 1.0):
        self.name = name
        self.results = results or []
        self.error = error
        self.hang = hang
        self.timeout = timeout
        self.calls = 0

    async def attempt(self, filters: CreatorFilter) -> List[CreatorCandidate]:
        self.calls += 1
        if self.hang:
            await asyncio.sleep(60)
        if self.error is not None:
            raise self.error
        return list(self.results)


class StubChannel(DeliveryChannel):
    """Succeeds unless the creator's username is listed in `fail_for`, or hangs."""

    def __init__(self, name: str, fail_for: Optional[Set[str]] = None, fail_all: bool = False,
                 simulated: bool = False, error: Optional[Exception] = None, hang: bool = False):
        self.name = name
        self.fail_for = fail_for or set()
        self.fail_all = fail_all
        self.simulated = simulated
        self.error = error
        self.hang = hang
        self.delivered: List[str] = []

    async def deliver(self, creator, campaign_id) -> None:
        if self.hang:
            await asyncio.sleep(60)
        if self.fail_all or creator.username in self.fail_for:
            raise self.error or ChannelUnavailableError(self.name, f"rejected {creator.username}")
        self.delivered.append(creator.username)
