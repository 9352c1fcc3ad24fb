"""
Creator Discovery Service - find creators matching a targeting filter.

Sources are tried in priority order and the first one that yields at least one
matching creator wins:
1. Creator Marketplace structured search
2. Legacy Business API search
3. Page scraping (several query variants)
4. Static fallback dataset
"""
import asyncio
import logging
from typing import List, Optional, Dict, Any, Tuple, Iterable

from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from affiliate_outreach.config import settings
from affiliate_outreach.core.exceptions import (
    AffiliateOutreachException,
    ChannelUnavailableError,
    PersistenceFailureError,
)
from affiliate_outreach.repositories.creator_repo import CreatorRepository
from affiliate_outreach.schemas.creator import (
    CreatorCandidate,
    CreatorFilter,
    DiscoverResponse,
    normalize_username,
)
from affiliate_outreach.services.fallback_creators import FALLBACK_CREATORS
from affiliate_outreach.services.integrations.base import DiscoveryStrategy, CreatorScraper
from affiliate_outreach.services.integrations.tiktok import TikTokAPIClient

logger = logging.getLogger(__name__)


class DiscoveryConfig(BaseModel):
    """Discovery timeouts and scrape limits."""
    api_timeout: float = 20.0
    scrape_timeout: float = 180.0
    scrape_min_yield: int = 10
    scrape_results_per_query: int = 20

    @classmethod
    def from_settings(cls) -> "DiscoveryConfig":
        return cls(
            api_timeout=settings.DISCOVERY_API_TIMEOUT_SECONDS,
            scrape_timeout=settings.DISCOVERY_SCRAPE_TIMEOUT_SECONDS,
            scrape_min_yield=settings.SCRAPE_MIN_YIELD,
            scrape_results_per_query=settings.APIFY_RESULTS_PER_QUERY,
        )


def dedupe(candidates: Iterable[CreatorCandidate]) -> List[CreatorCandidate]:
    """Drop repeated identity keys, keeping the first occurrence."""
    seen = set()
    unique = []
    for candidate in candidates:
        key = candidate.identity_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(candidate)
    return unique


def _fallback_category(raw_category: Optional[str], filters: CreatorFilter) -> Optional[str]:
    if raw_category:
        return raw_category
    return None if filters.category_is_wildcard else filters.category


def _number(value: Any, cast=float, default=0):
    try:
        return cast(value) if value is not None else default
    except (TypeError, ValueError):
        return default


# =============================================================================
# MAPPERS (provider record -> CreatorCandidate)
# =============================================================================

def candidate_from_marketplace(raw: Dict[str, Any], filters: CreatorFilter, source: str) -> CreatorCandidate:
    creator_id = raw.get("creator_id")
    username = raw.get("creator_username") or raw.get("username") or f"@{creator_id}"
    handle = normalize_username(username)
    return CreatorCandidate(
        username=username,
        creator_id=str(creator_id) if creator_id else None,
        display_name=raw.get("display_name") or raw.get("nickname"),
        follower_count=max(_number(raw.get("follower_count") or raw.get("followers_count"), int), 0),
        gmv=max(_number(raw.get("average_gmv") or raw.get("gmv"), float), 0.0),
        category=_fallback_category(raw.get("category"), filters),
        profile_url=f"https://tiktok.com/@{handle}",
        avatar_url=raw.get("avatar_url"),
        source=source
    )


def candidate_from_scrape(raw: Dict[str, Any], filters: CreatorFilter) -> Optional[CreatorCandidate]:
    """Map an Apify TikTok item; video items carry the profile under authorMeta."""
    author = raw.get("authorMeta") or raw
    username = author.get("name") or author.get("uniqueId")
    if not username:
        return None
    return CreatorCandidate(
        username=f"@{normalize_username(username)}",
        creator_id=str(author["id"]) if author.get("id") else None,
        display_name=author.get("nickName") or author.get("nickname"),
        follower_count=max(_number(author.get("fans") or author.get("followers"), int), 0),
        # Pages do not expose sales; GMV is only known when the item carries it
        gmv=max(_number(author.get("gmv") or raw.get("gmv"), float), 0.0),
        category=_fallback_category(author.get("category"), filters),
        profile_url=author.get("profileUrl") or f"https://tiktok.com/@{normalize_username(username)}",
        avatar_url=author.get("avatar"),
        source="page_scrape"
    )


# =============================================================================
# STRATEGIES
# =============================================================================

class MarketplaceSearchStrategy(DiscoveryStrategy):
    """Creator Marketplace structured search."""

    name = "creator_marketplace"

    def __init__(self, client: TikTokAPIClient, timeout: float = 20.0):
        self.client = client
        self.timeout = timeout

    async def attempt(self, filters: CreatorFilter) -> List[CreatorCandidate]:
        records = await self.client.search_creators(filters)
        logger.info(f"Creator Marketplace search returned {len(records)} creators")
        return [candidate_from_marketplace(r, filters, self.name) for r in records]


class LegacySearchStrategy(DiscoveryStrategy):
    """Older Business API creator discovery endpoint."""

    name = "legacy_search"

    def __init__(self, client: TikTokAPIClient, timeout: float = 20.0):
        self.client = client
        self.timeout = timeout

    async def attempt(self, filters: CreatorFilter) -> List[CreatorCandidate]:
        records = await self.client.search_creators_legacy(filters)
        logger.info(f"Legacy search returned {len(records)} creators")
        return [candidate_from_marketplace(r, filters, self.name) for r in records]


class ScrapeStrategy(DiscoveryStrategy):
    """
    Page scraping over several search phrasings.
    Stops querying once enough matching creators were collected.
    """

    name = "page_scrape"

    def __init__(
        self,
        scraper: CreatorScraper,
        timeout: float = 180.0,
        min_yield: int = 10,
        results_per_query: int = 20
    ):
        self.scraper = scraper
        self.timeout = timeout
        self.min_yield = min_yield
        self.results_per_query = results_per_query

    @staticmethod
    def query_variants(filters: CreatorFilter) -> List[str]:
        if filters.category_is_wildcard:
            return ["phone repair uk", "tech repair uk", "gadget reviews uk"]
        category = filters.category.strip().lower()
        return [f"{category} repair uk", f"{category} uk", f"{category} tiktok shop"]

    async def attempt(self, filters: CreatorFilter) -> List[CreatorCandidate]:
        collected: List[CreatorCandidate] = []
        last_error: Optional[Exception] = None
        succeeded = 0

        for query in self.query_variants(filters):
            try:
                records = await self.scraper.search(query, self.results_per_query)
            except ChannelUnavailableError as e:
                logger.warning(f"Scrape query '{query}' failed: {e.message}")
                last_error = e
                continue

            succeeded += 1
            for record in records:
                candidate = candidate_from_scrape(record, filters)
                if candidate is not None:
                    collected.append(candidate)

            matching = dedupe(c for c in collected if filters.matches(c))
            if len(matching) >= self.min_yield:
                logger.info(f"Scrape reached {len(matching)} matching creators after '{query}'")
                break

        if not succeeded and last_error is not None:
            raise last_error
        return dedupe(c for c in collected if filters.matches(c))


class StaticFallbackStrategy(DiscoveryStrategy):
    """Bundled creator dataset, always available."""

    name = "static_fallback"
    timeout = 5.0

    def __init__(self, creators: Optional[List[CreatorCandidate]] = None):
        self.creators = creators if creators is not None else FALLBACK_CREATORS

    async def attempt(self, filters: CreatorFilter) -> List[CreatorCandidate]:
        return [c.model_copy() for c in self.creators]


# =============================================================================
# CHAIN
# =============================================================================

class DiscoverySourceChain:
    """
    Ordered fallback over discovery strategies.
    Never merges across strategies: the first one with a matching creator wins.
    """

    def __init__(self, strategies: List[DiscoveryStrategy]):
        self.strategies = strategies

    async def run(self, filters: CreatorFilter) -> Tuple[List[CreatorCandidate], Optional[str]]:
        """Matching creators and the name of the strategy that produced them."""
        for strategy in self.strategies:
            try:
                candidates = await asyncio.wait_for(strategy.attempt(filters), timeout=strategy.timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Discovery source {strategy.name} timed out after {strategy.timeout}s")
                continue
            except AffiliateOutreachException as e:
                logger.warning(f"Discovery source {strategy.name} failed: {e.message}")
                continue
            except Exception as e:
                logger.error(f"Discovery source {strategy.name} raised {type(e).__name__}: {str(e)}", exc_info=True)
                continue

            matched = dedupe(c for c in candidates if filters.matches(c))
            if matched:
                logger.info(f"Discovery source {strategy.name} yielded {len(matched)} creators")
                return matched, strategy.name

            logger.info(f"Discovery source {strategy.name} yielded no matching creators")

        logger.warning("All discovery sources exhausted without results")
        return [], None

    async def discover(self, filters: CreatorFilter) -> List[CreatorCandidate]:
        creators, _ = await self.run(filters)
        return creators


def build_discovery_chain(
    client: TikTokAPIClient,
    scraper: Optional[CreatorScraper] = None,
    config: Optional[DiscoveryConfig] = None
) -> DiscoverySourceChain:
    """Default priority order. The scrape step is skipped when no scraper is available."""
    config = config or DiscoveryConfig.from_settings()
    strategies: List[DiscoveryStrategy] = [
        MarketplaceSearchStrategy(client, config.api_timeout),
        LegacySearchStrategy(client, config.api_timeout),
    ]
    if scraper is not None:
        strategies.append(ScrapeStrategy(
            scraper,
            timeout=config.scrape_timeout,
            min_yield=config.scrape_min_yield,
            results_per_query=config.scrape_results_per_query
        ))
    strategies.append(StaticFallbackStrategy())
    return DiscoverySourceChain(strategies)


# =============================================================================
# SERVICE
# =============================================================================

class CreatorDiscoveryService:
    """Runs the chain, remembers what it found, returns it best GMV first."""

    def __init__(self, session: AsyncSession, chain: Optional[DiscoverySourceChain] = None):
        self.creator_repo = CreatorRepository(session)
        self.chain = chain

    async def discover(self, filters: CreatorFilter) -> DiscoverResponse:
        creators, source = await self.chain.run(filters)

        saved = 0
        for candidate in creators:
            try:
                await self.creator_repo.upsert(candidate)
                saved += 1
            except PersistenceFailureError as e:
                logger.warning(f"Could not save creator {candidate.username}: {e.message}")

        logger.info(f"Discovery via {source or 'none'}: {len(creators)} creators, {saved} saved")
        ranked = sorted(creators, key=lambda c: c.gmv, reverse=True)
        return DiscoverResponse(creators=ranked, source=source)

    async def list_creators(self):
        return await self.creator_repo.list_ranked()
