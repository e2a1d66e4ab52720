"""Open Library subjects API client."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any
from urllib.parse import quote

import httpx

from openbook.shared.constants import (
    HTTP_RETRIES,
    HTTP_RETRY_BASE_DELAY,
    HTTP_TIMEOUT_SECONDS,
    OPENLIBRARY_BASE_URL,
)

logger = logging.getLogger(__name__)

# Includes servers dropping a keep-alive connection mid-request.
RETRYABLE_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
)


class CatalogRequestError(Exception):
    """
    Raised when a catalog page cannot be retrieved or decoded.
    """


class OpenLibraryClient:
    """
    Client for the Open Library subjects endpoint with transport retries.

    Only transport failures (timeouts, DNS and connection errors, dropped
    connections) are retried. HTTP error statuses surface immediately as
    ``httpx.HTTPStatusError``.

    Args:
        base_url: API base URL.
        timeout: HTTP request timeout in seconds.
        retries: Retries after the first attempt.
        retry_base_delay: Backoff base in seconds.
        transport: Optional transport override.
    """

    def __init__(
        self,
        base_url: str = OPENLIBRARY_BASE_URL,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        retries: int = HTTP_RETRIES,
        retry_base_delay: float = HTTP_RETRY_BASE_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the API client.

        Args:
            base_url: API base URL.
            timeout: HTTP request timeout in seconds.
            retries: Retries after the first attempt.
            retry_base_delay: Backoff base in seconds.
            transport: Optional transport override.
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retries = max(0, retries)
        self.retry_base_delay = retry_base_delay
        self._client = httpx.AsyncClient(
            timeout=self.timeout, transport=transport, follow_redirects=True
        )

    def build_subject_url(self, subject: str) -> str:
        """
        Build the subject endpoint URL with the subject as a path segment.

        Args:
            subject: Subject or genre name.

        Returns:
            Endpoint URL without query parameters.
        """
        return f"{self.base_url}/subjects/{quote(subject, safe='')}.json"

    def _backoff(self, attempt: int) -> float:
        """
        Compute the exponential delay before a retry.

        Args:
            attempt: Zero-based retry number.

        Returns:
            Delay in seconds with up to 20% jitter.
        """
        delay = self.retry_base_delay * (2**attempt)
        return delay + delay * 0.2 * random.random()

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        """
        Perform a GET request with retries and parse JSON.

        Args:
            url: Request URL.
            params: Query parameters.

        Returns:
            Decoded JSON payload.

        Raises:
            CatalogRequestError: Retries exhausted or the body is not JSON.
            httpx.HTTPStatusError: The server answered with an error status.
        """
        for attempt in range(self.retries + 1):
            try:
                response = await self._client.get(url, params=params)
            except RETRYABLE_ERRORS as exc:
                if attempt < self.retries:
                    delay = self._backoff(attempt)
                    logger.warning(
                        "Catalog request failed, retrying url=%s attempt=%d/%d "
                        "delay=%.2fs error=%r",
                        url,
                        attempt + 1,
                        self.retries,
                        delay,
                        exc,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise CatalogRequestError(
                    f"Catalog request failed after {self.retries} retries: {url}"
                ) from exc

            response.raise_for_status()
            try:
                return response.json()
            except ValueError as exc:
                raise CatalogRequestError(f"Invalid JSON from {url}") from exc

        raise CatalogRequestError(f"Catalog request failed: {url}")

    async def get_subject_works(
        self, subject: str, limit: int, offset: int = 0
    ) -> list[Any]:
        """
        Fetch one page of works for a subject.

        Args:
            subject: Subject or genre name.
            limit: Page size.
            offset: Index of the first work.

        Returns:
            Raw work payloads in response order.
        """
        url = self.build_subject_url(subject)
        data = await self._get_json(url, {"limit": limit, "offset": offset})
        if not isinstance(data, dict):
            raise CatalogRequestError(f"Unexpected payload from {url}")
        works = data.get("works")
        if not isinstance(works, list):
            return []
        return works

    async def aclose(self) -> None:
        """
        Close the underlying HTTP client.

        Returns:
            None.
        """
        await self._client.aclose()
