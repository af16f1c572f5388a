"""Server bootstrap for the canvas provisioning MCP server."""

import asyncio
import logging

from fastmcp import FastMCP  # type: ignore[import-not-found]

from canvas_provisioning.client import SharePointClient
from canvas_provisioning.settings import Settings
from canvas_provisioning.tools import ProvisioningToolDependencies, register_provisioning_tools
from canvas_provisioning.web import ClientContext


class ServerApp:
    """Server container holding the SharePoint connection and MCP app."""

    def __init__(self, settings: Settings) -> None:
        self._logger = logging.getLogger(__name__)
        self._settings = settings
        self._context: ClientContext | None = None
        self._tool_dependencies = ProvisioningToolDependencies()
        self._mcp_app = FastMCP(
            name="Canvas Provisioning MCP Server",
            instructions=(
                "Post-process provisioned canvas controls and resolve site lists by URL, id or title."
            ),
        )
        register_provisioning_tools(self._mcp_app, self._tool_dependencies)

    def startup(self) -> None:
        """Open the SharePoint connection used by the tools."""
        self._logger.info("Starting server bootstrap", extra={"site_url": self._settings.site_url})
        self._context = ClientContext(SharePointClient.from_settings(self._settings))
        self._tool_dependencies.attach_context(self._context)

    def shutdown(self) -> None:
        """Release acquired resources."""
        asyncio.run(self.shutdown_async())

    async def shutdown_async(self) -> None:
        """Release acquired resources from inside a running event loop."""
        self._logger.info("Shutting down server bootstrap")
        if self._context is not None:
            await self._context.aclose()
            self._context = None
        self._tool_dependencies.detach_context()

    def serve_forever(self) -> None:
        """Run the FastMCP SSE server until interrupted."""
        host = "0.0.0.0"
        port = self._settings.mcp_sse_port
        self._logger.info("Starting SSE transport", extra={"host": host, "port": port})
        self._mcp_app.run(transport="sse", host=host, port=port)

    async def serve_sse_async(self, host: str = "0.0.0.0") -> None:
        """Async helper for running the SSE transport (used by the smoke script)."""
        await self._mcp_app.run_http_async(
            transport="sse",
            host=host,
            port=self._settings.mcp_sse_port,
        )

    @property
    def mcp(self) -> FastMCP:
        """Expose the configured FastMCP instance."""
        return self._mcp_app


def build_server(settings: Settings) -> ServerApp:
    """Factory used by main.py to create the configured server instance."""
    return ServerApp(settings)
