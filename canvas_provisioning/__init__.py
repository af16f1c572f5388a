"""
Canvas control post-processing for SharePoint site provisioning.

The list post-processor rewrites List web part data so it references a list
resolved on the target site; the MCP server exposes it as a tool.
"""

from canvas_provisioning.models import CanvasControl, PropertyBag, WebPartType
from canvas_provisioning.processors import ListControlPostProcessor, get_post_processor

__all__ = [
    "CanvasControl",
    "ListControlPostProcessor",
    "PropertyBag",
    "WebPartType",
    "get_post_processor",
]
