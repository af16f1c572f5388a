"""
Post-processors applied to canvas controls after a page is provisioned.

``ListControlPostProcessor`` points a list web part at a concrete list so a
template can reference lists by URL or title instead of site-specific ids.
"""

import logging
import uuid
from typing import Awaitable, Callable, Protocol

from canvas_provisioning.codec import decode_properties, encode_properties
from canvas_provisioning.models import CanvasControl, PropertyBag, WebPartType
from canvas_provisioning.web import ClientContext, ResolvedList, Web

logger = logging.getLogger(__name__)

LIST_URL_PROPERTY = "selectedListUrl"
LIST_ID_PROPERTY = "selectedListId"
LIST_TITLE_PROPERTY = "listTitle"

# A resolver returns (applied, list). Applied means its property was usable,
# and an applied resolver ends the search even when it found nothing.
ListResolver = Callable[[Web, PropertyBag], Awaitable[tuple[bool, ResolvedList | None]]]


class CanvasControlPostProcessor(Protocol):
    async def process(self, canvas_control: CanvasControl, context: ClientContext) -> bool: ...


def parse_list_id(value: str | None) -> uuid.UUID | None:
    """Parse a list id, treating blanks, garbage and the nil id as absent."""
    if value is None or not value.strip():
        return None
    try:
        list_id = uuid.UUID(value.strip())
    except ValueError:
        return None
    if list_id.int == 0:
        return None
    return list_id


async def _resolve_by_url(web: Web, properties: PropertyBag) -> tuple[bool, ResolvedList | None]:
    url = properties.get_text(LIST_URL_PROPERTY)
    if url is None or not url.strip():
        return False, None
    if not url.startswith("/"):
        return True, await web.get_list_by_url(url)
    return True, await web.materialize(web.get_list(url))


async def _resolve_by_id(web: Web, properties: PropertyBag) -> tuple[bool, ResolvedList | None]:
    list_id = parse_list_id(properties.get_text(LIST_ID_PROPERTY))
    if list_id is None:
        return False, None
    return True, await web.materialize(web.get_list_by_id(list_id))


async def _resolve_by_title(web: Web, properties: PropertyBag) -> tuple[bool, ResolvedList | None]:
    title = properties.get_text(LIST_TITLE_PROPERTY)
    if title is None or not title.strip():
        return False, None
    return True, await web.get_list_by_title(title)


# Tried in order; the first resolver that applies decides the outcome.
LIST_RESOLVERS: tuple[ListResolver, ...] = (
    _resolve_by_url,
    _resolve_by_id,
    _resolve_by_title,
)


async def resolve_list(web: Web, properties: PropertyBag) -> ResolvedList | None:
    """Run the resolver chain against ``properties``."""
    for resolver in LIST_RESOLVERS:
        applied, resolved = await resolver(web, properties)
        if not applied:
            continue
        if resolved is not None:
            logger.debug(
                "List resolved",
                extra={"resolver": resolver.__name__, "list_id": str(resolved.id)},
            )
        return resolved
    return None


class ListControlPostProcessor:
    """Updates the list id of a List web part so it can be provisioned by URL or title."""

    def __init__(self, control: CanvasControl) -> None:
        self._properties = decode_properties(control.json_control_data)

    @property
    def properties(self) -> PropertyBag:
        return self._properties

    async def process(self, canvas_control: CanvasControl, context: ClientContext) -> bool:
        """
        Resolve the referenced list and rewrite the control payload.

        Returns False and leaves the payload untouched when no list matches.
        Lookup failures raised by the client propagate to the caller.
        """
        web = context.web
        lst = await resolve_list(web, self._properties)
        if lst is None:
            logger.info(
                "No list resolved for control, leaving it unchanged",
                extra={"control_id": canvas_control.control_id},
            )
            return False

        lst = await web.ensure_list_properties(lst)

        self._properties[LIST_ID_PROPERTY] = str(lst.id)
        self._properties[LIST_URL_PROPERTY] = lst.root_folder_server_relative_url

        canvas_control.json_control_data = encode_properties(self._properties)
        logger.info(
            "List control updated",
            extra={
                "control_id": canvas_control.control_id,
                "list_id": str(lst.id),
                "list_url": lst.root_folder_server_relative_url,
            },
        )
        return True


def get_post_processor(control: CanvasControl) -> CanvasControlPostProcessor | None:
    """Return the post-processor for ``control``, or None when it needs none."""
    if control.control_type is WebPartType.LIST:
        return ListControlPostProcessor(control)
    return None
