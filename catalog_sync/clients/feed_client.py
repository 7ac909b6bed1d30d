import logging
from typing import Any, List, Optional

from catalog_sync.clients.retrying_client import ApiRequest, RetryingClient
from catalog_sync.core.exceptions import SetupError

logger = logging.getLogger("feed_client")


class LocalFeedClient:
    """
    Reads the two local feeds: the price feed (DATA_API_URL) and the
    inventory ledger (INVENTORY_API_URL).

    Both endpoints return either a bare JSON array or an OData-style
    {"value": [...]} envelope. Feed calls are retried like any other call
    but do not consume Catalog API rate-limit tokens.
    """

    def __init__(
        self,
        retrying_client: RetryingClient,
        data_api_url: Optional[str],
        inventory_api_url: Optional[str],
    ) -> None:
        self._client = retrying_client
        self._data_api_url = data_api_url
        self._inventory_api_url = inventory_api_url

    async def fetch_products(self) -> List[dict]:
        return await self._fetch_records("price feed", self._data_api_url)

    async def fetch_ledger(self) -> List[dict]:
        return await self._fetch_records("inventory ledger", self._inventory_api_url)

    async def _fetch_records(self, feed: str, url: Optional[str]) -> List[dict]:
        if not url:
            raise SetupError(f"No URL configured for the {feed}")

        logger.info("fetching %s url=%s", feed, url)
        payload = await self._client.call_json(
            ApiRequest(
                method="GET",
                url=url,
                headers={"Accept": "application/json"},
                rate_limited=False,
            )
        )
        records = self._unwrap(payload)
        if records is None:
            raise SetupError(
                f"The {feed} returned {type(payload).__name__}, expected a list of records"
            )

        valid = [r for r in records if isinstance(r, dict)]
        dropped = len(records) - len(valid)
        if dropped:
            logger.warning("%s: skipped %s non-object records", feed, dropped)
        logger.info("%s: %s records fetched", feed, len(valid))
        return valid

    @staticmethod
    def _unwrap(payload: Any) -> Optional[list]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict) and isinstance(payload.get("value"), list):
            return payload["value"]
        return None
