import csv
import io
import logging
from pathlib import Path
from typing import List, Optional

from catalog_sync.clients.retrying_client import ApiRequest, RetryingClient
from catalog_sync.core.exceptions import SetupError

logger = logging.getLogger("discount_source")


class DiscountSource:
    """
    Loads the discount CSV (`sku,discount` rows) from a local path or an
    http(s) URL and returns the raw rows. Parsing and validation belong to
    DiscountOverlay.
    """

    def __init__(self, location: Optional[str], retrying_client: Optional[RetryingClient] = None) -> None:
        self._location = location
        self._client = retrying_client

    @property
    def location(self) -> Optional[str]:
        return self._location

    @property
    def is_remote(self) -> bool:
        return bool(self._location) and self._location.lower().startswith(("http://", "https://"))

    async def read_rows(self) -> List[List[str]]:
        if not self._location:
            raise SetupError("No discount source configured")
        text = await (self._read_remote() if self.is_remote else self._read_local())
        return [row for row in csv.reader(io.StringIO(text)) if row]

    async def _read_remote(self) -> str:
        if self._client is None:
            raise SetupError("A remote discount source needs an HTTP client")
        resp = await self._client.call(
            ApiRequest(method="GET", url=self._location, headers={"Accept": "text/csv"}, rate_limited=False)
        )
        return resp.text

    async def _read_local(self) -> str:
        path = Path(self._location)
        if not path.is_file():
            raise SetupError(f"Discount file not found: {path}")
        return path.read_text(encoding="utf-8-sig")
