"""
SharePoint REST client wrapper.

All reads go through ``SharePointClient.get_json`` which normalizes transport
failures, HTTP errors and malformed bodies into ``SharePointApiError`` and
retries throttled requests the way the platform asks clients to.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from canvas_provisioning.http_client import create_sharepoint_client
from canvas_provisioning.settings import Settings

logger = logging.getLogger(__name__)

# Throttled (429) and server busy (503).
RETRYABLE_STATUS_CODES = frozenset({429, 503})


class SharePointApiError(RuntimeError):
    """Represents failures when communicating with the SharePoint site."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SharePointNotFoundError(SharePointApiError):
    """The requested resource does not exist on the site (HTTP 404)."""


def _retry_after_seconds(response: httpx.Response) -> float | None:
    raw = response.headers.get("Retry-After", "").strip()
    if not raw:
        return None
    try:
        return max(float(raw), 0.0)
    except ValueError:
        return None


@dataclass(slots=True)
class SharePointClient:
    """Typed wrapper around the shared AsyncClient."""

    _client: httpx.AsyncClient
    retry_count: int = 10
    retry_delay: float = 0.5

    @classmethod
    def from_settings(cls, settings: Settings) -> "SharePointClient":
        """Factory that builds the client from Settings."""
        return cls(
            create_sharepoint_client(settings),
            retry_count=settings.retry_count,
            retry_delay=settings.retry_delay,
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def get_json(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """Execute a read query and return the decoded JSON object."""
        return await self._request("GET", path, params=params)

    async def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Normalized request handler with throttling retry."""

        def _transport_error(message: str, *, exc: Exception | None = None) -> SharePointApiError:
            logger.error(
                message,
                extra={"method": method, "path": path},
                exc_info=exc,
            )
            return SharePointApiError(message)

        delay = self.retry_delay
        attempt = 0
        while True:
            try:
                response = await self._client.request(method, path, **kwargs)
            except httpx.TimeoutException as exc:
                raise _transport_error(
                    f"SharePoint request timed out ({method} {path}).",
                    exc=exc,
                ) from exc
            except httpx.RequestError as exc:
                raise _transport_error(
                    f"SharePoint request failed ({method} {path}): {exc!s}",
                    exc=exc,
                ) from exc

            if response.status_code not in RETRYABLE_STATUS_CODES:
                break

            if attempt >= self.retry_count:
                logger.error(
                    "SharePoint kept throttling the request",
                    extra={"method": method, "path": path, "attempts": attempt + 1},
                )
                raise SharePointApiError(
                    f"SharePoint request {method} {path} still throttled after {attempt + 1} attempts.",
                    status_code=response.status_code,
                )

            wait = _retry_after_seconds(response)
            if wait is None:
                wait = delay
            logger.warning(
                "SharePoint throttled request, retrying",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "attempt": attempt + 1,
                    "wait": wait,
                },
            )
            await asyncio.sleep(wait)
            delay *= 2
            attempt += 1

        if response.is_error:
            snippet = response.text.strip()
            if len(snippet) > 512:
                snippet = f"{snippet[:512]}..."
            logger.warning(
                "SharePoint responded with error",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "content": snippet,
                },
            )
            error_cls = SharePointNotFoundError if response.status_code == 404 else SharePointApiError
            raise error_cls(
                f"SharePoint error ({response.status_code}) during {method} {path}: {snippet or 'no body provided.'}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            logger.error(
                "SharePoint returned invalid JSON",
                extra={"method": method, "path": path},
            )
            raise SharePointApiError(
                f"SharePoint returned invalid JSON during {method} {path}.",
                status_code=response.status_code,
            ) from exc

        if not isinstance(data, dict):
            raise SharePointApiError(
                f"SharePoint returned an unexpected payload during {method} {path}.",
                status_code=response.status_code,
            )
        return data
