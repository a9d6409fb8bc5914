"""apibridge - expose a REST API described by OpenAPI as MCP tools."""
from __future__ import annotations

from .errors import (
    BridgeError,
    ClientError,
    FetchError,
    NotFoundError,
    SessionError,
    UnclassifiedError,
    UpstreamError,
)
from .http_client import ApiClient
from .server import BridgeMCP
from .sessions import SessionRegistry
from .swagger import Endpoint, ParsedDocument, load_document, parse_document
from .tools import register_all_tools

__all__ = [
    "ApiClient",
    "BridgeMCP",
    "BridgeError",
    "ClientError",
    "Endpoint",
    "FetchError",
    "NotFoundError",
    "ParsedDocument",
    "SessionError",
    "SessionRegistry",
    "UnclassifiedError",
    "UpstreamError",
    "load_document",
    "parse_document",
    "register_all_tools",
]
