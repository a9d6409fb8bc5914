"""Tool registration for apibridge."""
from __future__ import annotations

from typing import TYPE_CHECKING

from .endpoints import RegistrationReport, register_endpoint_tools, tool_names

if TYPE_CHECKING:
    from ..http_client import ApiClient
    from ..server import BridgeMCP
    from ..swagger import ParsedDocument


def register_all_tools(mcp: "BridgeMCP", document: "ParsedDocument", client: "ApiClient") -> RegistrationReport:
    """Register all tools with the MCP server."""
    return register_endpoint_tools(mcp, document, client)


__all__ = ["RegistrationReport", "register_all_tools", "register_endpoint_tools", "tool_names"]
