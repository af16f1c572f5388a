"""Environment-driven configuration for the canvas provisioning service."""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass(frozen=True, slots=True)
class Settings:
    """Container for runtime configuration."""

    site_url: str
    access_token: str | None = None
    api_timeout: float = 30.0
    retry_count: int = 10
    retry_delay: float = 0.5
    mcp_sse_port: int = 8000

    @classmethod
    def load(cls) -> "Settings":
        """
        Load configuration from environment variables.

        Python-dotenv is used so developers can keep the site URL and token in a
        local .env file without exporting them globally.
        """
        load_dotenv()

        site_url = os.getenv("SHAREPOINT_SITE_URL", "").strip()
        if not site_url:
            raise ValueError("SHAREPOINT_SITE_URL is required but was not provided.")

        access_token = os.getenv("SHAREPOINT_ACCESS_TOKEN", "").strip() or None

        api_timeout_raw = os.getenv("API_TIMEOUT", "").strip() or "30"
        try:
            api_timeout = float(api_timeout_raw)
        except ValueError as exc:
            raise ValueError("API_TIMEOUT must be a numeric value.") from exc
        if api_timeout <= 0:
            raise ValueError("API_TIMEOUT must be greater than zero.")

        retry_count_raw = os.getenv("RETRY_COUNT", "").strip() or "10"
        try:
            retry_count = int(retry_count_raw)
        except ValueError as exc:
            raise ValueError("RETRY_COUNT must be an integer.") from exc
        if retry_count < 0:
            raise ValueError("RETRY_COUNT must not be negative.")

        retry_delay_raw = os.getenv("RETRY_DELAY", "").strip() or "0.5"
        try:
            retry_delay = float(retry_delay_raw)
        except ValueError as exc:
            raise ValueError("RETRY_DELAY must be a numeric value.") from exc
        if retry_delay < 0:
            raise ValueError("RETRY_DELAY must not be negative.")

        mcp_sse_port_raw = os.getenv("MCP_SSE_PORT", "").strip() or "8000"
        try:
            mcp_sse_port = int(mcp_sse_port_raw)
        except ValueError as exc:
            raise ValueError("MCP_SSE_PORT must be an integer.") from exc
        if mcp_sse_port <= 0:
            raise ValueError("MCP_SSE_PORT must be greater than zero.")

        return cls(
            site_url=site_url.rstrip("/"),
            access_token=access_token,
            api_timeout=api_timeout,
            retry_count=retry_count,
            retry_delay=retry_delay,
            mcp_sse_port=mcp_sse_port,
        )
