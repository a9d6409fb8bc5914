"""Shared pytest fixtures for apibridge tests."""
from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import MagicMock, patch

import httpx
import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from apibridge.http_client import ApiClient  # noqa: E402
from apibridge.swagger import ParsedDocument, parse_document  # noqa: E402

API_BASE_URL = "https://fakerestapi.example.com"
JSON_CONTENT = "application/json; v=1.0"


# =============================================================================
# Sample OpenAPI Document Fixtures
# =============================================================================


def _id_param(name: str = "id") -> dict[str, Any]:
    return {
        "name": name,
        "in": "path",
        "required": True,
        "schema": {"type": "integer", "format": "int32"},
    }


def _json_body(schema_name: str) -> dict[str, Any]:
    schema = {"$ref": f"#/components/schemas/{schema_name}"}
    return {
        "content": {
            JSON_CONTENT: {"schema": schema},
            "text/json; v=1.0": {"schema": schema},
        }
    }


def _json_response(schema: dict[str, Any]) -> dict[str, Any]:
    return {
        "200": {
            "description": "Success",
            "content": {
                "text/plain; v=1.0": {"schema": schema},
                JSON_CONTENT: {"schema": schema},
            },
        }
    }


def _crud_paths(tag: str, schema_name: str) -> dict[str, Any]:
    ref = {"$ref": f"#/components/schemas/{schema_name}"}
    return {
        f"/api/v1/{tag}": {
            "get": {"tags": [tag], "responses": _json_response({"type": "array", "items": ref})},
            "post": {
                "tags": [tag],
                "requestBody": _json_body(schema_name),
                "responses": _json_response(ref),
            },
        },
        f"/api/v1/{tag}/{{id}}": {
            "get": {"tags": [tag], "parameters": [_id_param()], "responses": _json_response(ref)},
            "put": {
                "tags": [tag],
                "parameters": [_id_param()],
                "requestBody": _json_body(schema_name),
                "responses": _json_response(ref),
            },
            "delete": {
                "tags": [tag],
                "parameters": [_id_param()],
                "responses": {"200": {"description": "Success"}},
            },
        },
    }


@pytest.fixture
def fake_rest_spec() -> dict[str, Any]:
    """Return a FakeRESTApi-shaped OpenAPI 3.0 document."""
    paths: dict[str, Any] = {}
    paths.update(_crud_paths("Activities", "Activity"))
    paths.update(_crud_paths("Authors", "Author"))
    paths["/api/v1/Authors/authors/books/{idBook}"] = {
        "get": {
            "tags": ["Authors"],
            "parameters": [_id_param("idBook")],
            "responses": _json_response({"type": "array", "items": {"$ref": "#/components/schemas/Author"}}),
        }
    }
    paths.update(_crud_paths("Books", "Book"))
    paths.update(_crud_paths("CoverPhotos", "CoverPhoto"))
    paths["/api/v1/CoverPhotos/books/covers/{idBook}"] = {
        "get": {"tags": ["CoverPhotos"], "parameters": [_id_param("idBook")], "responses": {}}
    }

    return {
        "openapi": "3.0.1",
        "info": {"title": "FakeRESTApi.Web V1", "version": "v1"},
        "paths": paths,
        "components": {
            "schemas": {
                "Activity": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer", "format": "int32"},
                        "title": {"type": "string", "nullable": True},
                        "dueDate": {"type": "string", "format": "date-time"},
                        "completed": {"type": "boolean"},
                    },
                    "additionalProperties": False,
                },
                "Author": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer", "format": "int32"},
                        "idBook": {"type": "integer", "format": "int32"},
                        "firstName": {"type": "string", "nullable": True},
                        "lastName": {"type": "string", "nullable": True},
                    },
                },
                "Book": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer", "format": "int32"},
                        "title": {"type": "string", "nullable": True},
                        "description": {"type": "string", "nullable": True},
                        "pageCount": {"type": "integer", "format": "int32"},
                        "excerpt": {"type": "string", "nullable": True},
                        "publishDate": {"type": "string", "format": "date-time"},
                    },
                },
                "CoverPhoto": {
                    "type": "object",
                    "properties": {
                        "id": {"type": "integer", "format": "int32"},
                        "idBook": {"type": "integer", "format": "int32"},
                        "url": {"type": "string", "format": "uri", "nullable": True},
                    },
                },
            }
        },
    }


@pytest.fixture
def parsed_document(fake_rest_spec: dict[str, Any]) -> ParsedDocument:
    return parse_document(fake_rest_spec, base_url=API_BASE_URL)


# =============================================================================
# HTTP Client Fixtures
# =============================================================================


@pytest.fixture
def mock_httpx_get() -> Generator[MagicMock, None, None]:
    """Mock ``httpx.get`` used for document fetches."""
    with patch("httpx.get") as mock_get:
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.is_success = True
        mock_response.reason_phrase = "OK"
        mock_response.headers = {"content-type": "application/json"}
        mock_response.json.return_value = {}
        mock_response.text = "{}"
        mock_get.return_value = mock_response
        yield mock_get


@pytest.fixture
def make_api_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], ApiClient]:
    """Build an ApiClient whose requests are answered by ``handler``."""

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> ApiClient:
        transport = httpx.MockTransport(handler)
        return ApiClient(API_BASE_URL, client=httpx.AsyncClient(transport=transport))

    return factory


# =============================================================================
# Environment Fixtures
# =============================================================================


_ENV_VARS = (
    "SWAGGER_URL",
    "API_BASE_URL",
    "SWAGGER_FETCH_TIMEOUT",
    "MCP_SERVER_NAME",
    "MCP_SERVER_VERSION",
    "MCP_PORT",
    "PORT",
    "MCP_BIND_HOST",
    "MCP_JSON_RESPONSE",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_environment() -> Generator[None, None, None]:
    """Restore configuration environment variables after each test."""
    original_env = {key: os.environ.get(key) for key in _ENV_VARS}

    yield

    for key, value in original_env.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value
