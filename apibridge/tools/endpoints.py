"""One MCP tool per OpenAPI endpoint."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mcp.types import TextContent

from ..input_schema import build_input_shape
from ..naming import build_tool_description, build_tool_name, needs_review
from ..swagger import Endpoint, ParsedDocument

if TYPE_CHECKING:
    from ..http_client import ApiClient
    from ..server import BridgeMCP, ToolHandler

logger = logging.getLogger(__name__)


@dataclass
class RegistrationReport:
    registered: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str, str]] = field(default_factory=list)
    flagged: list[tuple[str, str, str]] = field(default_factory=list)


def split_arguments(arguments: dict[str, Any], endpoint: Endpoint) -> tuple[dict[str, Any], dict[str, Any] | None]:
    """Partition tool arguments into path parameters and a request body.

    Every argument that is not a path parameter goes into the body, an
    explicit ``None`` included; only absent keys are left out. A ``None``
    path parameter is not substituted.

    Args:
        arguments: Validated tool arguments
        endpoint: Endpoint the tool is bound to

    Returns:
        Tuple of (path parameters, body or ``None`` when there is no body field)
    """
    path_names = {p.name for p in endpoint.path_parameters}
    path_params = {
        name: value for name, value in arguments.items()
        if name in path_names and value is not None
    }
    body = {name: value for name, value in arguments.items() if name not in path_names}
    # PUT carries its id in both the path and the payload.
    if endpoint.method.upper() == "PUT" and arguments.get("id") is not None:
        body["id"] = arguments["id"]
    return path_params, body or None


def make_handler(endpoint: Endpoint, client: "ApiClient") -> "ToolHandler":
    """Return the dispatcher bound to ``endpoint``.

    The dispatcher sends one request per call and returns the normalized
    response as a single pretty-printed JSON text block. Remote failures
    propagate as the matching :class:`~apibridge.errors.BridgeError`.

    Args:
        endpoint: Endpoint to dispatch to
        client: Client for the wrapped REST API

    Returns:
        Async handler taking validated arguments
    """

    async def dispatch(arguments: dict[str, Any]) -> list[TextContent]:
        path_params, body = split_arguments(arguments, endpoint)
        result = await client.request(
            endpoint.method,
            endpoint.path,
            path_params=path_params,
            body=body,
        )
        return [TextContent(type="text", text=json.dumps(result, indent=2))]

    return dispatch


def tool_names(document: ParsedDocument) -> list[str]:
    """Return the unique tool names registration would produce, in order."""
    return list(dict.fromkeys(build_tool_name(endpoint) for endpoint in document.endpoints))


def register_endpoint_tools(mcp: "BridgeMCP", document: ParsedDocument, client: "ApiClient") -> RegistrationReport:
    """Register a tool for every endpoint whose name is not yet taken.

    Endpoints are visited in document order; when two map to the same name
    the first one wins and the later one is skipped.
    """
    report = RegistrationReport()
    seen: set[str] = set()

    logger.info("Registering tools from %d endpoints...", len(document.endpoints))
    for endpoint in document.endpoints:
        name = build_tool_name(endpoint)
        if name in seen:
            logger.info("Skipping duplicate: %s (%s %s)", name, endpoint.method, endpoint.path)
            report.skipped.append((name, endpoint.method, endpoint.path))
            continue
        seen.add(name)

        if needs_review(endpoint):
            logger.warning(
                "Tool %s (%s %s) only loosely matches the naming rules; review it",
                name, endpoint.method, endpoint.path,
            )
            report.flagged.append((name, endpoint.method, endpoint.path))

        mcp.register(
            name,
            build_tool_description(endpoint),
            build_input_shape(endpoint, document.schemas),
            make_handler(endpoint, client),
        )
        report.registered.append(name)
        logger.info("Registered: %s (%s %s)", name, endpoint.method, endpoint.path)

    logger.info("Total tools registered: %d", len(report.registered))
    return report


__all__ = [
    "RegistrationReport",
    "make_handler",
    "register_endpoint_tools",
    "split_arguments",
    "tool_names",
]
