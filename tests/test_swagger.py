"""Tests for fetching and parsing the OpenAPI document."""
from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from apibridge.errors import FetchError
from apibridge.swagger import (
    Parameter,
    SchemaEntry,
    _extract_base_url,
    fetch_document,
    load_document,
    parse_document,
    resolve_schema,
    schema_name_from_ref,
)


# =============================================================================
# Document Fetching
# =============================================================================

class TestFetchDocument:

    def test_fetch_json(self, mock_httpx_get, fake_rest_spec):
        mock_httpx_get.return_value.json.return_value = fake_rest_spec

        result = fetch_document("https://api.example.com/swagger.json")

        assert result == fake_rest_spec
        mock_httpx_get.assert_called_once()
        assert mock_httpx_get.call_args.args[0] == "https://api.example.com/swagger.json"

    def test_fetch_yaml(self, mock_httpx_get):
        response = mock_httpx_get.return_value
        response.headers = {"content-type": "application/yaml"}
        response.text = "openapi: 3.0.0\ninfo:\n  title: YAML API\n  version: '2'\npaths: {}\n"

        result = fetch_document("https://api.example.com/openapi.yaml")

        assert result["info"]["title"] == "YAML API"

    def test_non_2xx_raises_fetch_error(self, mock_httpx_get):
        response = mock_httpx_get.return_value
        response.is_success = False
        response.status_code = 503
        response.reason_phrase = "Service Unavailable"

        with pytest.raises(FetchError) as exc_info:
            fetch_document("https://api.example.com/swagger.json")

        assert exc_info.value.status_code == 503
        assert "Failed to fetch Swagger: 503 Service Unavailable" in str(exc_info.value)

    def test_network_failure_raises_fetch_error(self, mock_httpx_get):
        mock_httpx_get.side_effect = httpx.ConnectError("connection refused")

        with pytest.raises(FetchError) as exc_info:
            fetch_document("https://api.example.com/swagger.json")

        assert exc_info.value.url == "https://api.example.com/swagger.json"

    def test_invalid_json_raises_fetch_error(self, mock_httpx_get):
        mock_httpx_get.return_value.json.side_effect = json.JSONDecodeError("bad", "", 0)

        with pytest.raises(FetchError):
            fetch_document("https://api.example.com/swagger.json")

    def test_non_object_document_raises_fetch_error(self, mock_httpx_get):
        mock_httpx_get.return_value.json.return_value = ["not", "a", "document"]

        with pytest.raises(FetchError):
            fetch_document("https://api.example.com/swagger.json")

    def test_load_document_parses_fetched_spec(self, mock_httpx_get, fake_rest_spec):
        mock_httpx_get.return_value.json.return_value = fake_rest_spec

        document = load_document("https://fakerestapi.example.com/swagger/v1/swagger.json")

        assert document.title == "FakeRESTApi.Web V1"
        assert document.base_url == "https://fakerestapi.example.com"
        assert len(document.endpoints) == 22


# =============================================================================
# Parsing
# =============================================================================

class TestParseDocument:

    def test_metadata(self, parsed_document):
        assert parsed_document.title == "FakeRESTApi.Web V1"
        assert parsed_document.version == "v1"
        assert parsed_document.base_url == "https://fakerestapi.example.com"

    def test_metadata_defaults(self):
        document = parse_document({"paths": {}})
        assert document.title == "FakeRESTApi"
        assert document.version == "v1"

    def test_schemas_collected(self, parsed_document):
        assert set(parsed_document.schemas) == {"Activity", "Author", "Book", "CoverPhoto"}
        book = parsed_document.schemas["Book"]
        assert book.type == "object"
        assert book.properties["publishDate"].format == "date-time"
        assert book.properties["title"].nullable is True

    def test_endpoints_in_document_order(self, parsed_document):
        pairs = [(e.method, e.path) for e in parsed_document.endpoints[:5]]
        assert pairs == [
            ("GET", "/api/v1/Activities"),
            ("POST", "/api/v1/Activities"),
            ("GET", "/api/v1/Activities/{id}"),
            ("PUT", "/api/v1/Activities/{id}"),
            ("DELETE", "/api/v1/Activities/{id}"),
        ]

    def test_path_parameters(self, parsed_document):
        endpoint = next(
            e for e in parsed_document.endpoints
            if e.method == "GET" and e.path == "/api/v1/Books/{id}"
        )
        assert endpoint.parameters == (
            Parameter(name="id", location="path", required=True, type="integer", format="int32"),
        )
        assert endpoint.tags == ("Books",)

    def test_parameter_defaults(self):
        spec = {
            "paths": {
                "/items": {
                    "get": {"parameters": [{"name": "q", "in": "query"}]}
                }
            }
        }
        param = parse_document(spec).endpoints[0].parameters[0]
        assert param == Parameter(name="q", location="query", required=False, type="string")

    def test_request_body_from_json_content(self, parsed_document):
        endpoint = next(
            e for e in parsed_document.endpoints
            if e.method == "POST" and e.path == "/api/v1/Books"
        )
        assert endpoint.request_body == SchemaEntry(ref="#/components/schemas/Book")

    def test_request_body_requires_json_content_type(self):
        spec = {
            "paths": {
                "/upload": {
                    "post": {
                        "requestBody": {
                            "content": {"multipart/form-data": {"schema": {"type": "object"}}}
                        }
                    }
                }
            }
        }
        assert parse_document(spec).endpoints[0].request_body is None

    def test_response_schema_from_200(self, parsed_document):
        endpoint = parsed_document.endpoints[0]
        assert endpoint.response_schema == SchemaEntry(
            type="array", items_ref="#/components/schemas/Activity"
        )

    def test_unknown_methods_skipped(self):
        spec = {
            "paths": {
                "/items": {
                    "get": {},
                    "head": {},
                    "options": {},
                    "parameters": [],
                }
            }
        }
        document = parse_document(spec)
        assert [e.method for e in document.endpoints] == ["GET"]

    def test_patch_recognized(self):
        spec = {"paths": {"/items/{id}": {"patch": {"tags": ["Items"]}}}}
        assert parse_document(spec).endpoints[0].method == "PATCH"

    def test_invalid_paths_raise(self):
        with pytest.raises(ValueError):
            parse_document({"paths": ["/a", "/b"]})

    def test_model_is_immutable(self, parsed_document):
        with pytest.raises(Exception):
            parsed_document.endpoints[0].path = "/changed"  # type: ignore[misc]
        with pytest.raises(TypeError):
            parsed_document.schemas["New"] = SchemaEntry()  # type: ignore[index]


# =============================================================================
# Schema References and Base URL
# =============================================================================

class TestSchemaReferences:

    def test_schema_name_from_ref(self):
        assert schema_name_from_ref("#/components/schemas/Book") == "Book"
        assert schema_name_from_ref("Book") == "Book"

    def test_resolve_by_name(self, parsed_document):
        resolved = resolve_schema(SchemaEntry(ref="#/components/schemas/Book"), parsed_document.schemas)
        assert resolved is parsed_document.schemas["Book"]

    def test_dangling_ref_resolves_to_itself(self, parsed_document):
        entry = SchemaEntry(ref="#/components/schemas/Missing")
        assert resolve_schema(entry, parsed_document.schemas) is entry

    def test_none(self, parsed_document):
        assert resolve_schema(None, parsed_document.schemas) is None


class TestBaseUrl:

    def test_servers_url(self):
        spec: dict[str, Any] = {"servers": [{"url": "https://api.example.com/v1/"}]}
        assert _extract_base_url(spec) == "https://api.example.com/v1"

    def test_relative_server_url(self):
        spec = {"servers": [{"url": "/v2"}]}
        assert _extract_base_url(spec, "https://api.example.com/openapi.json") == "https://api.example.com/v2"

    def test_swagger_2_host(self):
        spec = {"host": "api.example.com", "basePath": "/v1", "schemes": ["http"]}
        assert _extract_base_url(spec) == "http://api.example.com/v1"

    def test_document_url_fallback(self):
        assert _extract_base_url({}, "https://fake.example.com/swagger/v1/swagger.json") == "https://fake.example.com"

    def test_explicit_base_url_wins(self):
        document = parse_document({"servers": [{"url": "https://a.example.com"}], "paths": {}}, base_url="https://b.example.com")
        assert document.base_url == "https://b.example.com"
