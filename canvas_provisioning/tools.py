"""MCP tool registrations for the canvas provisioning server."""

import logging
from dataclasses import dataclass
from typing import Annotated, Awaitable, Callable

from fastmcp import Context, FastMCP
from pydantic import Field

from canvas_provisioning.client import SharePointApiError
from canvas_provisioning.codec import ControlDataError
from canvas_provisioning.models import CanvasControl, PropertyBag, WebPartType
from canvas_provisioning.processors import (
    LIST_ID_PROPERTY,
    LIST_TITLE_PROPERTY,
    LIST_URL_PROPERTY,
    get_post_processor,
    resolve_list,
)
from canvas_provisioning.web import ClientContext

logger = logging.getLogger(__name__)


@dataclass
class ProvisioningToolDependencies:
    """Runtime dependencies required by the MCP tools."""

    context: ClientContext | None = None

    def attach_context(self, context: ClientContext) -> None:
        self.context = context

    def detach_context(self) -> None:
        self.context = None

    def require_context(self) -> ClientContext:
        if self.context is None:
            raise RuntimeError("SharePoint client context is not initialized.")
        return self.context


def register_provisioning_tools(
    mcp: FastMCP,
    dependencies: ProvisioningToolDependencies,
) -> None:
    """Register MCP tools that post-process canvas controls against the site."""

    def _log_tool_event(tool_name: str, event: str, **fields: object) -> None:
        logger.info(
            "provisioning_tool_event",
            extra={"tool": tool_name, "event": event, **fields},
        )

    async def _with_error_handling(
        tool_name: str,
        action: Callable[[], Awaitable[dict[str, str]]],
    ) -> dict[str, str]:
        try:
            return await action()
        except ControlDataError as exc:
            logger.warning("%s rejected control data", tool_name)
            _log_tool_event(tool_name, "invalid_control_data", error=str(exc))
            return {"error": str(exc)}
        except SharePointApiError as exc:
            logger.warning("%s failed due to SharePoint error", tool_name, exc_info=True)
            _log_tool_event(tool_name, "api_error", error=str(exc))
            return {"error": str(exc)}
        except Exception as exc:  # noqa: BLE001
            logger.exception("%s failed unexpectedly", tool_name)
            _log_tool_event(tool_name, "unexpected_error", error=str(exc))
            return {"error": f"Unexpected error: {exc}"}

    @mcp.tool(
        name="process_canvas_control",
        description="Runs the provisioning post-processor for a canvas control. For List web parts the referenced list (by selectedListUrl, selectedListId or listTitle) is resolved on the site and the control data is rewritten to point at it. Returns the resulting control data and a status of UPDATED, UNCHANGED or SKIPPED.",
    )
    async def process_canvas_control(
        control_type: Annotated[str, Field(description="The web part type of the control (e.g., 'List', 'Text').")],
        json_control_data: Annotated[str, Field(description="The control's JSON property payload.")],
        ctx: Context,
    ) -> dict[str, str]:
        """Post-process one canvas control and return its payload."""

        try:
            web_part_type = WebPartType.parse(control_type)
        except ValueError:
            web_part_type = WebPartType.CUSTOM
        context = dependencies.require_context()

        async def _call() -> dict[str, str]:
            control = CanvasControl(control_type=web_part_type, json_control_data=json_control_data)
            processor = get_post_processor(control)
            if processor is None:
                status = "SKIPPED"
            elif await processor.process(control, context):
                status = "UPDATED"
                await ctx.info("Canvas control now points at the resolved list.")
            else:
                status = "UNCHANGED"
            _log_tool_event(
                "process_canvas_control",
                "success",
                control_type=web_part_type.value,
                status=status,
            )
            return {"status": status, "json_control_data": control.json_control_data}

        return await _with_error_handling("process_canvas_control", _call)

    @mcp.tool(
        name="resolve_list",
        description="Looks up a list on the site by server- or web-relative URL, list id, or display title, in that priority order. Returns the list id, title and root folder URL.",
    )
    async def resolve_list_tool(
        list_url: Annotated[str, Field(description="Server-relative ('/sites/s/Lib') or web-relative ('Lib') list URL.")] = "",
        list_id: Annotated[str, Field(description="The list id (GUID).")] = "",
        list_title: Annotated[str, Field(description="The list display title.")] = "",
    ) -> dict[str, str]:
        """Return details of the first list matching the given references."""

        if not any(value.strip() for value in (list_url, list_id, list_title)):
            raise ValueError("At least one of list_url, list_id or list_title must be provided.")
        context = dependencies.require_context()

        async def _call() -> dict[str, str]:
            properties = PropertyBag(
                {
                    LIST_URL_PROPERTY: list_url,
                    LIST_ID_PROPERTY: list_id,
                    LIST_TITLE_PROPERTY: list_title,
                }
            )
            lst = await resolve_list(context.web, properties)
            if lst is None:
                _log_tool_event("resolve_list", "not_found")
                return {"error": "No matching list was found."}
            lst = await context.web.ensure_list_properties(lst)
            result = {
                "list_id": str(lst.id),
                "title": lst.title or "",
                "root_folder_url": lst.root_folder_server_relative_url or "",
            }
            _log_tool_event("resolve_list", "success", list_id=result["list_id"])
            return result

        return await _with_error_handling("resolve_list", _call)

    logger.info("Canvas provisioning MCP tools registered.")
