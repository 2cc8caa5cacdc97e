"""HTTP client for the Google Books volumes endpoint."""
import requests
from typing import Optional, Dict, Any, List
import logging

from catalog_ingest.config import PAGE_SIZE
from catalog_ingest.errors import SourceApiError

logger = logging.getLogger(__name__)

BASE_URL = "https://www.googleapis.com/books/v1/volumes"


def build_params(query: str, offset: int, api_key: Optional[str]) -> Dict[str, Any]:
    """Query parameters for one page of search results."""
    params = {
        "q": query,
        "startIndex": offset,
        "maxResults": PAGE_SIZE
    }
    if api_key:
        params["key"] = api_key
    return params


def extract_error_message(payload: Any, fallback: str) -> str:
    """
    Pull the message out of a Google error envelope.

    Args:
        payload: Decoded JSON body, or None if it did not decode
        fallback: Text to use when the envelope has no message
    """
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    return fallback or "unknown error"


def extract_items(payload: Any) -> List[Dict[str, Any]]:
    """Items of a successful response; empty means the source is exhausted."""
    if not isinstance(payload, dict):
        raise SourceApiError(None, "response body is not a JSON object")
    return payload.get("items") or []


class GoogleBooksClient:
    """
    Client for Google Books API pagination.

    Each fetch_page() call makes exactly one request. Failures are raised
    as SourceApiError and never retried here.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: int = 10,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Google Books API client.

        Args:
            api_key: API key sent with every request
            timeout: Request timeout in seconds
            session: Existing session to reuse
        """
        self.api_key = api_key
        self.timeout = timeout

        # Create session for connection pooling
        self.session = session or requests.Session()

    def fetch_page(self, query: str, offset: int) -> List[Dict[str, Any]]:
        """
        Fetch one page of raw volumes.

        Args:
            query: Search query string
            offset: Zero-based startIndex

        Returns:
            Raw volume items (empty when there are no more results)

        Raises:
            SourceApiError: on an error status or transport failure
        """
        params = build_params(query, offset, self.api_key)

        try:
            response = self.session.get(BASE_URL, params=params, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request to Google Books failed: {e}")
            raise SourceApiError(None, str(e)) from e

        if not response.ok:
            try:
                payload = response.json()
            except ValueError:
                payload = None
            message = extract_error_message(payload, response.text or response.reason)
            logger.error(f"Google Books returned {response.status_code}: {message}")
            raise SourceApiError(response.status_code, message)

        try:
            payload = response.json()
        except ValueError as e:
            raise SourceApiError(response.status_code, f"invalid JSON in response: {e}") from e

        return extract_items(payload)

    def close(self):
        """Close the session."""
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
