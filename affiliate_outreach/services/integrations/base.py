"""
Base interfaces for integration providers.
Discovery sources, delivery channels and scrapers are interchangeable behind these.
"""
from abc import ABC, abstractmethod
from typing import List, Dict, Any

from affiliate_outreach.schemas.creator import CreatorCandidate, CreatorFilter


class DiscoveryStrategy(ABC):
    """Base interface for a creator discovery source (TCM search, scraping, etc.)"""

    name: str = "strategy"
    timeout: float = 20.0  # seconds; enforced by the chain

    @abstractmethod
    async def attempt(self, filters: CreatorFilter) -> List[CreatorCandidate]:
        """
        Fetch candidates for the filter.

        May return unfiltered candidates; the chain applies the filter.
        Raises on failure (ChannelUnavailableError, AuthUnavailableError, ...).
        """
        pass


class DeliveryChannel(ABC):
    """Base interface for invitation delivery (collaboration invite, DM, etc.)"""

    name: str = "channel"
    simulated: bool = False

    @abstractmethod
    async def deliver(self, creator, campaign_id) -> None:
        """
        Deliver one invitation.
        Returns on success, raises ChannelUnavailableError on failure.
        """
        pass


class CreatorScraper(ABC):
    """Base interface for page scraping providers."""

    @abstractmethod
    async def search(self, query: str, limit: int) -> List[Dict[str, Any]]:
        """Raw profile records for a search query."""
        pass
