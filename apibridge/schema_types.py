"""Map OpenAPI primitive type descriptors onto structural field types.

A :class:`FieldType` is a small tagged variant: its ``kind`` selects the
value constraint, ``nullable`` widens it to accept ``None``. It renders
itself as JSON Schema for tool listings and checks call arguments.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from pydantic import AnyUrl, TypeAdapter, ValidationError

DATE_TIME_DESCRIPTION = "ISO 8601 date-time format"

_url_adapter: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)


class FieldKind(str, enum.Enum):
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    STRING = "string"
    URI = "uri"
    ANY = "any"


@dataclass(frozen=True)
class FieldType:
    """Structural type of one input field."""

    kind: FieldKind
    nullable: bool = False
    description: str | None = None

    def json_schema(self) -> dict[str, Any]:
        if self.kind is FieldKind.ANY:
            schema: dict[str, Any] = {}
        elif self.kind is FieldKind.URI:
            schema = {"type": "string", "format": "uri"}
        else:
            schema = {"type": self.kind.value}
        if self.nullable and schema:
            schema = {"anyOf": [schema, {"type": "null"}]}
        if self.description:
            schema["description"] = self.description
        return schema

    def accepts(self, value: Any) -> bool:
        """Return True if ``value`` satisfies this field type."""
        if value is None:
            return self.nullable or self.kind is FieldKind.ANY
        if self.kind is FieldKind.INTEGER:
            if isinstance(value, bool):
                return False
            return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
        if self.kind is FieldKind.NUMBER:
            return isinstance(value, (int, float)) and not isinstance(value, bool)
        if self.kind is FieldKind.BOOLEAN:
            return isinstance(value, bool)
        if self.kind is FieldKind.STRING:
            return isinstance(value, str)
        if self.kind is FieldKind.URI:
            return isinstance(value, str) and _is_url(value)
        return True

    def coerce(self, value: Any) -> Any:
        """Return an accepted ``value`` in canonical form: ``5.0`` becomes ``5`` for integers."""
        if self.kind is FieldKind.INTEGER and isinstance(value, float):
            return int(value)
        return value

    def describe(self) -> str:
        label = self.kind.value
        return f"{label} or null" if self.nullable else label


def _is_url(value: str) -> bool:
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        return False
    return True


def map_type(type_name: str | None, format: str | None = None, nullable: bool | None = False) -> FieldType:
    """Convert an OpenAPI ``type``/``format``/``nullable`` triple to a FieldType.

    Unrecognized types map to an unconstrained field instead of failing, so one
    odd property never stops tool generation.
    """
    nullable = bool(nullable)
    if type_name == "integer":
        return FieldType(FieldKind.INTEGER, nullable)
    if type_name == "number":
        return FieldType(FieldKind.NUMBER, nullable)
    if type_name == "boolean":
        return FieldType(FieldKind.BOOLEAN, nullable)
    if type_name == "string":
        if format == "date-time":
            return FieldType(FieldKind.STRING, nullable, DATE_TIME_DESCRIPTION)
        if format == "uri":
            return FieldType(FieldKind.URI, nullable)
        return FieldType(FieldKind.STRING, nullable)
    return FieldType(FieldKind.ANY, nullable)


__all__ = ["DATE_TIME_DESCRIPTION", "FieldKind", "FieldType", "map_type"]
