"""HTTP client factory for talking to the SharePoint REST API."""

import httpx

from canvas_provisioning.settings import Settings


def create_sharepoint_client(settings: Settings) -> httpx.AsyncClient:
    """
    Build an AsyncClient rooted at the configured site.

    Requests ask for ``odata=nometadata`` so list payloads come back as plain
    objects. The bearer token is attached only when one is configured.
    """
    headers = {"Accept": "application/json;odata=nometadata"}
    if settings.access_token:
        headers["Authorization"] = f"Bearer {settings.access_token}"
    return httpx.AsyncClient(
        base_url=settings.site_url,
        timeout=settings.api_timeout,
        headers=headers,
    )
