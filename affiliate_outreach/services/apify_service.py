import asyncio
import logging
from typing import Optional, List, Dict, Any

from apify_client import ApifyClient

from affiliate_outreach.config import settings
from affiliate_outreach.core.exceptions import ChannelUnavailableError
from affiliate_outreach.services.integrations.base import CreatorScraper

logger = logging.getLogger(__name__)


class ApifyCreatorScraper(CreatorScraper):
    """
    TikTok profile search through an Apify actor.
    The Apify client is synchronous, so runs are pushed to the default executor.
    """

    def __init__(
        self,
        api_token: Optional[str] = None,
        actor_id: Optional[str] = None,
        client: Optional[ApifyClient] = None,
        wait_secs: int = None
    ):
        self.api_token = api_token if api_token is not None else settings.APIFY_API_TOKEN
        self.actor_id = actor_id or settings.APIFY_CREATOR_ACTOR_ID
        self.wait_secs = wait_secs or int(settings.DISCOVERY_SCRAPE_TIMEOUT_SECONDS)
        self.client = client or (ApifyClient(self.api_token) if self.api_token else None)

    async def call_actor(self, run_input: dict) -> str:
        """
        Calls the actor and waits for it to finish without blocking the event loop.
        Returns the default dataset ID.
        """
        if self.client is None:
            raise ChannelUnavailableError("Apify", "APIFY_API_TOKEN is not configured")

        loop = asyncio.get_running_loop()

        def _run():
            return self.client.actor(self.actor_id).call(
                run_input=run_input,
                wait_secs=self.wait_secs
            )

        logger.info(f"Calling Apify actor {self.actor_id}...")
        try:
            run = await loop.run_in_executor(None, _run)
        except Exception as e:
            logger.error(f"Failed to call Apify actor {self.actor_id}: {str(e)}")
            raise ChannelUnavailableError("Apify", str(e)) from e

        if run and run.get("status") == "SUCCEEDED":
            logger.info(f"Apify run {run.get('id')} succeeded.")
            return run.get("defaultDatasetId")

        status = run.get("status") if run else "Unknown"
        logger.error(f"Apify run failed or timed out. Status: {status}")
        raise ChannelUnavailableError("Apify", f"run status {status}")

    async def get_dataset_items(self, dataset_id: str) -> List[Dict[str, Any]]:
        """Retrieves the results from a dataset (wrapping the sync client)."""
        loop = asyncio.get_running_loop()

        def _fetch():
            return self.client.dataset(dataset_id).list_items().items

        try:
            return await loop.run_in_executor(None, _fetch)
        except Exception as e:
            logger.error(f"Failed to fetch dataset {dataset_id}: {str(e)}")
            raise ChannelUnavailableError("Apify", str(e)) from e

    async def search(self, query: str, limit: int) -> List[Dict[str, Any]]:
        """Profile records (one per video author or profile hit) for a search query."""
        dataset_id = await self.call_actor({
            "searchQueries": [query],
            "resultsPerPage": limit,
            "searchSection": "/user",
            "shouldDownloadVideos": False,
            "shouldDownloadCovers": False
        })
        items = await self.get_dataset_items(dataset_id)
        logger.info(f"Apify search '{query}' returned {len(items)} items")
        return items
