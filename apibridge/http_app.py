"""Starlette application: health, server info and the MCP endpoint."""
from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, AsyncIterator

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

if TYPE_CHECKING:
    from .http_client import ApiClient
    from .sessions import SessionRegistry

logger = logging.getLogger(__name__)

MCP_PATH = "/mcp"
TRANSPORT_NAME = "streamable-http"


def create_app(
    registry: "SessionRegistry",
    *,
    server_name: str,
    server_version: str,
    description: str,
    tools: list[str] | None = None,
    client: "ApiClient | None" = None,
) -> Starlette:
    """Build the HTTP app around an already-populated MCP server's registry."""

    async def health(request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "healthy",
            "server": server_name,
            "transport": TRANSPORT_NAME,
            "sessions": len(registry),
        })

    async def info(request: Request) -> JSONResponse:
        return JSONResponse({
            "name": server_name,
            "description": description,
            "version": server_version,
            "transport": TRANSPORT_NAME,
            "endpoints": {"mcp": MCP_PATH, "health": "/health"},
            "usage": {
                "initialize": f"POST {MCP_PATH} with initialize request",
                "request": f"POST {MCP_PATH} with Mcp-Session-Id header",
                "notifications": f"GET {MCP_PATH} with Mcp-Session-Id header (SSE)",
                "terminate": f"DELETE {MCP_PATH} with Mcp-Session-Id header",
            },
            "tools": list(tools or []),
        })

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with registry.run():
            logger.info("Session registry ready")
            try:
                yield
            finally:
                if client is not None:
                    await client.aclose()
                logger.info("Shutdown complete")

    return Starlette(
        routes=[
            Route("/", info, methods=["GET"]),
            Route("/health", health, methods=["GET"]),
            Route(MCP_PATH, registry, methods=["GET", "POST", "DELETE"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "DELETE"],
                allow_headers=["*"],
                expose_headers=["Mcp-Session-Id"],
            )
        ],
        lifespan=lifespan,
    )


__all__ = ["MCP_PATH", "create_app"]
