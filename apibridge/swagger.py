"""Fetch an OpenAPI/Swagger document and parse it into endpoint descriptors."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping
from urllib.parse import urlparse

import httpx
import yaml

from .errors import FetchError

logger = logging.getLogger(__name__)

HTTP_METHODS = ("get", "post", "put", "delete", "patch")
PARAMETER_LOCATIONS = ("path", "query", "header", "body")

DEFAULT_TITLE = "FakeRESTApi"
DEFAULT_VERSION = "v1"


@dataclass(frozen=True)
class PropertySpec:
    type: str | None = None
    format: str | None = None
    nullable: bool = False


@dataclass(frozen=True)
class SchemaEntry:
    """A schema object as declared in the document, without deep resolution."""

    type: str | None = None
    properties: Mapping[str, PropertySpec] | None = None
    ref: str | None = None
    items_ref: str | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> "SchemaEntry":
        if not isinstance(raw, dict):
            return cls()
        properties = None
        raw_properties = raw.get("properties")
        if isinstance(raw_properties, dict):
            properties = MappingProxyType({
                name: PropertySpec(
                    type=prop.get("type"),
                    format=prop.get("format"),
                    nullable=bool(prop.get("nullable", False)),
                )
                if isinstance(prop, dict) else PropertySpec()
                for name, prop in raw_properties.items()
            })
        items = raw.get("items")
        return cls(
            type=raw.get("type"),
            properties=properties,
            ref=raw.get("$ref"),
            items_ref=items.get("$ref") if isinstance(items, dict) else None,
        )


@dataclass(frozen=True)
class Parameter:
    name: str
    location: str
    required: bool = False
    type: str = "string"
    format: str | None = None


@dataclass(frozen=True)
class Endpoint:
    """One HTTP operation of the wrapped API."""

    method: str
    path: str
    parameters: tuple[Parameter, ...] = ()
    request_body: SchemaEntry | None = None
    tags: tuple[str, ...] = ()
    response_schema: SchemaEntry | None = None
    operation_id: str | None = None
    summary: str | None = None

    @property
    def path_parameters(self) -> tuple[Parameter, ...]:
        return tuple(p for p in self.parameters if p.location == "path")


@dataclass(frozen=True)
class ParsedDocument:
    title: str
    version: str
    base_url: str
    endpoints: tuple[Endpoint, ...] = ()
    schemas: Mapping[str, SchemaEntry] = field(default_factory=lambda: MappingProxyType({}))


def schema_name_from_ref(ref: str) -> str:
    """Return the name after the last ``/`` of a ``$ref``.

    Example: ``"#/components/schemas/Book"`` -> ``"Book"``
    """
    return ref.rsplit("/", 1)[-1]


def resolve_schema(schema: SchemaEntry | None, schemas: Mapping[str, SchemaEntry]) -> SchemaEntry | None:
    """Resolve a ``$ref`` by name lookup; a dangling reference resolves to itself."""
    if schema is None:
        return None
    if schema.ref:
        resolved = schemas.get(schema_name_from_ref(schema.ref))
        if resolved is not None:
            return resolved
    return schema


def fetch_document(url: str, timeout: float = 30) -> dict[str, Any]:
    """Fetch the raw OpenAPI document from ``url``.

    Raises:
        FetchError: On network failure, a non-2xx status, or an unparseable body.
    """
    logger.info("Fetching Swagger from: %s", url)
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
    except httpx.RequestError as e:
        raise FetchError(f"Failed to fetch Swagger: {e}", url=url) from e
    if not response.is_success:
        raise FetchError(
            f"Failed to fetch Swagger: {response.status_code} {response.reason_phrase}",
            url=url,
            status_code=response.status_code,
        )

    content_type = response.headers.get("content-type", "")
    try:
        if "json" in content_type:
            payload = response.json()
        else:
            payload = yaml.safe_load(response.text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise FetchError(f"Failed to fetch Swagger: invalid document ({e})", url=url) from e

    if not isinstance(payload, dict):
        raise FetchError("Failed to fetch Swagger: document is not an object", url=url)
    return payload


def _extract_base_url(spec: dict[str, Any], document_url: str | None = None) -> str:
    """Work out the wrapped API's base URL from the document."""
    servers = spec.get("servers", [])
    if isinstance(servers, list) and servers:
        server = servers[0]
        if isinstance(server, dict) and server.get("url"):
            url = str(server["url"]).rstrip("/")
            if urlparse(url).scheme or not document_url:
                return url
            # Relative server URL, e.g. "/v2"
            parsed = urlparse(document_url)
            return f"{parsed.scheme}://{parsed.netloc}{url}"

    # Swagger 2.0
    host = spec.get("host", "")
    if host:
        schemes = spec.get("schemes", ["https"])
        scheme = schemes[0] if isinstance(schemes, list) and schemes else "https"
        return f"{scheme}://{host}{spec.get('basePath', '')}".rstrip("/")

    if document_url:
        parsed = urlparse(document_url)
        return f"{parsed.scheme}://{parsed.netloc}"
    return ""


def _json_schema_of(container: Any) -> SchemaEntry | None:
    """Return the schema of the first ``application/json`` content entry."""
    if not isinstance(container, dict):
        return None
    content = container.get("content")
    if not isinstance(content, dict):
        return None
    for content_type, media in content.items():
        if "application/json" in content_type:
            if isinstance(media, dict) and "schema" in media:
                return SchemaEntry.from_raw(media["schema"])
            return None
    return None


def _parse_parameters(raw_parameters: Any) -> tuple[Parameter, ...]:
    parameters = []
    for param in raw_parameters or []:
        if not isinstance(param, dict) or "name" not in param:
            continue
        schema = param.get("schema") or {"type": "string"}
        parameters.append(
            Parameter(
                name=str(param["name"]),
                location=str(param.get("in", "query")),
                required=bool(param.get("required", False)),
                type=schema.get("type", "string") if isinstance(schema, dict) else "string",
                format=schema.get("format") if isinstance(schema, dict) else None,
            )
        )
    return tuple(parameters)


def _parse_operation(path: str, method: str, operation: dict[str, Any]) -> Endpoint:
    responses = operation.get("responses")
    success = responses.get("200") if isinstance(responses, dict) else None
    tags = operation.get("tags", [])
    return Endpoint(
        method=method.upper(),
        path=path,
        parameters=_parse_parameters(operation.get("parameters")),
        request_body=_json_schema_of(operation.get("requestBody")),
        tags=tuple(str(tag) for tag in tags) if isinstance(tags, list) else (),
        response_schema=_json_schema_of(success),
        operation_id=operation.get("operationId"),
        summary=operation.get("summary"),
    )


def parse_document(
    spec: dict[str, Any],
    base_url: str | None = None,
    document_url: str | None = None,
) -> ParsedDocument:
    """Build the immutable endpoint/schema model from a raw document."""
    paths = spec.get("paths", {})
    if not isinstance(paths, dict):
        raise ValueError("Invalid spec: paths is not an object")

    components = spec.get("components")
    raw_schemas = components.get("schemas") if isinstance(components, dict) else None
    if not isinstance(raw_schemas, dict):
        raw_schemas = {}
    schemas = MappingProxyType({
        name: SchemaEntry.from_raw(schema) for name, schema in raw_schemas.items()
    })

    endpoints = []
    for path, path_item in paths.items():
        if not isinstance(path_item, dict):
            continue
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            endpoints.append(_parse_operation(path, method, operation))

    info = spec.get("info")
    if not isinstance(info, dict):
        info = {}
    return ParsedDocument(
        title=info.get("title") or DEFAULT_TITLE,
        version=info.get("version") or DEFAULT_VERSION,
        base_url=base_url or _extract_base_url(spec, document_url),
        endpoints=tuple(endpoints),
        schemas=schemas,
    )


def load_document(url: str, base_url: str | None = None, timeout: float = 30) -> ParsedDocument:
    """Fetch and parse the document at ``url``."""
    document = parse_document(fetch_document(url, timeout=timeout), base_url=base_url, document_url=url)
    logger.info("Parsed: %s (%s)", document.title, document.version)
    logger.info("Found %d endpoints", len(document.endpoints))
    logger.info(
        "Found %d schemas: %s", len(document.schemas), ", ".join(document.schemas)
    )
    return document


__all__ = [
    "HTTP_METHODS",
    "PropertySpec",
    "SchemaEntry",
    "Parameter",
    "Endpoint",
    "ParsedDocument",
    "schema_name_from_ref",
    "resolve_schema",
    "fetch_document",
    "parse_document",
    "load_document",
]
