import logging
import httpx
from typing import Optional, List, Dict, Any

from storefront.core.config import settings

logger = logging.getLogger(__name__)


class CatalogClient:
    """HTTP client for a remote product catalog (JSONBin-style bin)."""

    def __init__(self, base_url: Optional[str] = None, api_key: Optional[str] = None):
        self.base_url = base_url if base_url is not None else settings.CATALOG_URL
        self.api_key = api_key if api_key is not None else settings.CATALOG_API_KEY
        self.client = None

    @property
    def configured(self) -> bool:
        return bool(self.base_url)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=10.0)
        return self.client

    async def fetch_products(self) -> List[Dict[str, Any]]:
        """
        Fetch the raw product list.

        GET {base_url}/latest
        X-Master-Key: <api key>

        Returns either a bare list or {"record": [...]}; both are unwrapped to the list.
        """
        try:
            client = await self._get_client()
            headers = {}
            if self.api_key:
                headers["X-Master-Key"] = self.api_key

            response = await client.get(f"{self.base_url.rstrip('/')}/latest", headers=headers)
            response.raise_for_status()
            data = response.json()

            if isinstance(data, dict):
                data = data.get("record", [])
            if not isinstance(data, list):
                raise ValueError(f"Unexpected catalog payload: {type(data).__name__}")

            logger.info(f"Fetched {len(data)} products from {self.base_url}")
            return data

        except httpx.HTTPStatusError as e:
            logger.error(f"Catalog fetch failed with status {e.response.status_code}: {e.response.text}")
            raise Exception(f"Failed to fetch catalog: {e.response.status_code}")
        except Exception as e:
            logger.error(f"Catalog fetch failed: {str(e)}")
            raise Exception(f"Failed to fetch catalog: {str(e)}")

    async def close(self):
        """Close HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None


# Global instance
catalog_client = CatalogClient()
