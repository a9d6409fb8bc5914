"""Entry point: python -m apibridge

Fetches the OpenAPI document, registers one tool per endpoint, then serves
the MCP endpoint over Streamable HTTP.
"""
from __future__ import annotations

import logging
import sys

import uvicorn

from . import config
from .errors import FetchError
from .http_app import create_app
from .http_client import ApiClient
from .server import BridgeMCP
from .sessions import SessionRegistry
from .swagger import load_document
from .tools import register_all_tools

logger = logging.getLogger("apibridge")


def main() -> None:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("%s MCP Server (Streamable HTTP transport)", config.MCP_SERVER_NAME)

    # Tools must exist before the listener accepts a single call.
    try:
        document = load_document(
            config.SWAGGER_URL,
            base_url=config.API_BASE_URL or None,
            timeout=config.SWAGGER_FETCH_TIMEOUT,
        )
    except (FetchError, ValueError) as e:
        logger.error("Failed to start server: %s", e)
        sys.exit(1)

    mcp = BridgeMCP(config.MCP_SERVER_NAME, version=config.MCP_SERVER_VERSION)
    client = ApiClient(document.base_url)
    report = register_all_tools(mcp, document, client)

    registry = SessionRegistry(mcp.protocol_server, json_response=config.MCP_JSON_RESPONSE)
    app = create_app(
        registry,
        server_name=config.MCP_SERVER_NAME,
        server_version=config.MCP_SERVER_VERSION,
        description=f"MCP Server for {document.title}",
        tools=report.registered,
        client=client,
    )

    logger.info("Server running on http://%s:%d", config.MCP_BIND_HOST, config.MCP_PORT)
    uvicorn.run(app, host=config.MCP_BIND_HOST, port=config.MCP_PORT, log_level=config.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
