"""Async HTTP client for the Google Books volumes endpoint."""
import httpx
from typing import Optional, Dict, Any, List
import logging

from catalog_ingest.client import BASE_URL, build_params, extract_error_message, extract_items
from catalog_ingest.errors import SourceApiError

logger = logging.getLogger(__name__)


class AsyncGoogleBooksClient:
    """Async counterpart of GoogleBooksClient with the same fetch_page contract."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize async client.

        Args:
            api_key: API key sent with every request
            timeout: Request timeout
            client: Existing httpx client to reuse
        """
        self.api_key = api_key
        self.timeout = timeout

        # Create async HTTP client
        self.client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_page(self, query: str, offset: int) -> List[Dict[str, Any]]:
        """
        Fetch one page of raw volumes asynchronously.

        Raises:
            SourceApiError: on an error status or transport failure
        """
        params = build_params(query, offset, self.api_key)

        try:
            logger.debug(f"Async request: {query} (index={offset})")
            response = await self.client.get(BASE_URL, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Async request to Google Books failed: {e}")
            raise SourceApiError(None, str(e)) from e

        if not response.is_success:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = extract_error_message(payload, response.text or response.reason_phrase)
            logger.error(f"Google Books returned {response.status_code}: {message}")
            raise SourceApiError(response.status_code, message)

        try:
            payload = response.json()
        except ValueError as e:
            raise SourceApiError(response.status_code, f"invalid JSON in response: {e}") from e

        return extract_items(payload)

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
