"""
Site handle and list lookups.

Lookups that must hit the server are split in two phases: ``Web.get_list`` and
``Web.get_list_by_id`` only build a ``ListReference``; ``Web.materialize``
performs the round trip. The web-relative URL and title lookups run their own
query and report a miss as ``None``.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any

from canvas_provisioning.client import SharePointClient, SharePointNotFoundError

logger = logging.getLogger(__name__)

LIST_FIELDS = {
    "$select": "Id,Title,RootFolder/Name,RootFolder/ServerRelativeUrl",
    "$expand": "RootFolder",
}


class ListNotFoundError(SharePointNotFoundError):
    """A list reference did not match any list on the site."""


class ReferenceKind(str, Enum):
    SERVER_RELATIVE_URL = "server_relative_url"
    ID = "id"


@dataclass(frozen=True, slots=True)
class ListReference:
    """Unloaded handle to a list; nothing is fetched until materialized."""

    kind: ReferenceKind
    value: str

    def describe(self) -> str:
        if self.kind is ReferenceKind.ID:
            return f"with id {self.value}"
        return f"at {self.value}"


@dataclass(frozen=True, slots=True)
class ResolvedList:
    """List fields loaded from the server."""

    id: uuid.UUID
    title: str | None = None
    root_folder_name: str | None = None
    root_folder_server_relative_url: str | None = None

    @property
    def is_fully_loaded(self) -> bool:
        return self.root_folder_name is not None and self.root_folder_server_relative_url is not None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ResolvedList":
        root_folder = payload.get("RootFolder") or {}
        return cls(
            id=uuid.UUID(str(payload["Id"])),
            title=payload.get("Title"),
            root_folder_name=root_folder.get("Name"),
            root_folder_server_relative_url=root_folder.get("ServerRelativeUrl"),
        )


def odata_literal(value: str) -> str:
    """Quote a string for use inside an OData expression."""
    return "'" + value.replace("'", "''") + "'"


def combine_url(base: str, relative: str) -> str:
    return f"{base.rstrip('/')}/{relative.lstrip('/')}"


class Web:
    """The active site, exposing the list lookups used during provisioning."""

    def __init__(self, client: SharePointClient) -> None:
        self._client = client
        self._server_relative_url: str | None = None

    async def get_server_relative_url(self) -> str:
        """Return the web's server-relative URL, loading it once."""
        if self._server_relative_url is None:
            payload = await self._client.get_json("/_api/web", params={"$select": "ServerRelativeUrl"})
            self._server_relative_url = str(payload.get("ServerRelativeUrl") or "/")
        return self._server_relative_url

    def get_list(self, server_relative_url: str) -> ListReference:
        return ListReference(ReferenceKind.SERVER_RELATIVE_URL, server_relative_url)

    def get_list_by_id(self, list_id: uuid.UUID) -> ListReference:
        return ListReference(ReferenceKind.ID, str(list_id))

    async def materialize(self, reference: ListReference) -> ResolvedList:
        """Load a referenced list, failing with ``ListNotFoundError`` when it does not exist."""
        if reference.kind is ReferenceKind.ID:
            path = f"/_api/web/lists(guid'{reference.value}')"
            params = dict(LIST_FIELDS)
        else:
            path = "/_api/web/GetList(@u)"
            params = {**LIST_FIELDS, "@u": odata_literal(reference.value)}

        logger.debug("Loading list", extra={"kind": reference.kind.value, "value": reference.value})
        try:
            payload = await self._client.get_json(path, params=params)
        except SharePointNotFoundError as exc:
            raise ListNotFoundError(
                f"List {reference.describe()} was not found.",
                status_code=exc.status_code,
            ) from exc
        return ResolvedList.from_payload(payload)

    async def get_list_by_url(self, web_relative_url: str) -> ResolvedList | None:
        """Resolve a list by its URL relative to this web, or None when absent."""
        if not web_relative_url or not web_relative_url.strip():
            raise ValueError("web_relative_url must be a non-empty string.")
        server_relative_url = combine_url(await self.get_server_relative_url(), web_relative_url)
        try:
            return await self.materialize(self.get_list(server_relative_url))
        except ListNotFoundError:
            logger.info("No list found at web-relative URL", extra={"url": server_relative_url})
            return None

    async def get_list_by_title(self, title: str) -> ResolvedList | None:
        """Resolve a list by display title, or None when absent."""
        if not title or not title.strip():
            raise ValueError("title must be a non-empty string.")
        params = {**LIST_FIELDS, "$filter": f"Title eq {odata_literal(title)}"}
        payload = await self._client.get_json("/_api/web/lists", params=params)
        matches = payload.get("value") or []
        if not matches:
            logger.info("No list found with title", extra={"title": title})
            return None
        return ResolvedList.from_payload(matches[0])

    async def ensure_list_properties(self, lst: ResolvedList) -> ResolvedList:
        """Make sure the id and root folder fields are loaded, refetching if needed."""
        if lst.is_fully_loaded:
            return lst
        return await self.materialize(self.get_list_by_id(lst.id))


class ClientContext:
    """Connection to one site: owns the REST client and the active web."""

    def __init__(self, client: SharePointClient) -> None:
        self._client = client
        self._web = Web(client)

    @property
    def web(self) -> Web:
        return self._web

    async def aclose(self) -> None:
        await self._client.aclose()
