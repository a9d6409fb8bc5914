"""Configuration for the apibridge MCP server."""
from __future__ import annotations

import os


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    """Get a boolean environment variable."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in ("true", "1", "yes", "on")


# OpenAPI document and wrapped REST API
SWAGGER_URL = os.getenv(
    "SWAGGER_URL", "https://fakerestapi.azurewebsites.net/swagger/v1/swagger.json"
)
# Empty means "derive from the document"
API_BASE_URL = os.getenv("API_BASE_URL", "").rstrip("/")
SWAGGER_FETCH_TIMEOUT = _get_int("SWAGGER_FETCH_TIMEOUT", 30)

# MCP server identity and listener
MCP_SERVER_NAME = os.getenv("MCP_SERVER_NAME", "fake-api-mcp")
MCP_SERVER_VERSION = os.getenv("MCP_SERVER_VERSION", "1.0.0")
MCP_PORT = _get_int("MCP_PORT", _get_int("PORT", 3000))
MCP_BIND_HOST = os.getenv("MCP_BIND_HOST", "0.0.0.0")
MCP_JSON_RESPONSE = _get_bool("MCP_JSON_RESPONSE", False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

__all__ = [
    "SWAGGER_URL",
    "API_BASE_URL",
    "SWAGGER_FETCH_TIMEOUT",
    "MCP_SERVER_NAME",
    "MCP_SERVER_VERSION",
    "MCP_PORT",
    "MCP_BIND_HOST",
    "MCP_JSON_RESPONSE",
    "LOG_LEVEL",
]
