"""MCP server host for tools generated from an OpenAPI document."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence

from mcp.server.fastmcp import FastMCP
from mcp.types import ContentBlock
from mcp.types import Tool as MCPTool

from .input_schema import InputShape

logger = logging.getLogger(__name__)

ToolHandler = Callable[[dict[str, Any]], Awaitable[Sequence[ContentBlock]]]


@dataclass(frozen=True)
class EndpointTool:
    name: str
    description: str
    input_shape: InputShape
    handler: ToolHandler


class BridgeMCP(FastMCP):
    """FastMCP whose tool surface is registered at runtime from input shapes."""

    def __init__(self, name: str, version: str | None = None, **settings: Any) -> None:
        super().__init__(name, **settings)
        if version:
            self._mcp_server.version = version
        self._endpoint_tools: dict[str, EndpointTool] = {}

    @property
    def protocol_server(self):
        """The low-level server that session transports are connected to."""
        return self._mcp_server

    @property
    def tool_names(self) -> list[str]:
        return list(self._endpoint_tools)

    def has_tool(self, name: str) -> bool:
        return name in self._endpoint_tools

    def register(self, name: str, description: str, input_shape: InputShape, handler: ToolHandler) -> None:
        """Register one generated tool. Names are unique."""
        if name in self._endpoint_tools:
            raise ValueError(f"Tool '{name}' is already registered")
        self._endpoint_tools[name] = EndpointTool(name, description, input_shape, handler)

    async def list_tools(self) -> list[MCPTool]:
        tools = [
            MCPTool(
                name=tool.name,
                description=tool.description,
                inputSchema=tool.input_shape.json_schema(),
            )
            for tool in self._endpoint_tools.values()
        ]
        return tools + await super().list_tools()

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        tool = self._endpoint_tools.get(name)
        if tool is None:
            return await super().call_tool(name, arguments)
        validated = tool.input_shape.validate(arguments)
        logger.debug("Calling tool %s", name)
        return await tool.handler(validated)


__all__ = ["BridgeMCP", "EndpointTool", "ToolHandler"]
