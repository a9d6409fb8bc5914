"""Assemble the flat input shape of a generated tool.

Path parameters come first. POST and PUT endpoints add the properties of
their JSON request-body schema, always optional: the remote service stays
the authority on which body fields it needs.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from .errors import ClientError
from .schema_types import FieldType, map_type
from .swagger import Endpoint, SchemaEntry, resolve_schema

BODY_METHODS = frozenset({"POST", "PUT"})


@dataclass(frozen=True)
class InputField:
    name: str
    type: FieldType
    required: bool = False
    location: str = "body"


@dataclass(frozen=True)
class InputShape:
    fields: Mapping[str, InputField]

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def required(self) -> list[str]:
        return [name for name, f in self.fields.items() if f.required]

    def json_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {name: f.type.json_schema() for name, f in self.fields.items()},
        }
        if self.required:
            schema["required"] = self.required
        return schema

    def validate(self, arguments: Mapping[str, Any] | None) -> dict[str, Any]:
        """Check ``arguments`` against the shape and drop unknown keys.

        Accepted values are returned in canonical form, so an integer field
        given ``5.0`` yields ``5``.

        Args:
            arguments: Raw tool-call arguments (``None`` means no arguments)

        Returns:
            Validated arguments limited to the fields of this shape

        Raises:
            ClientError: If a required field is missing or a value has the wrong type.
        """
        arguments = arguments or {}
        for name in self.required:
            if arguments.get(name) is None:
                raise ClientError(f"Invalid arguments: missing required field '{name}'")

        validated: dict[str, Any] = {}
        for name, value in arguments.items():
            input_field = self.fields.get(name)
            if input_field is None:
                continue
            if not input_field.type.accepts(value):
                raise ClientError(
                    f"Invalid arguments: '{name}' must be {input_field.type.describe()}"
                )
            validated[name] = input_field.type.coerce(value)
        return validated


def build_body_fields(schema: SchemaEntry | None, schemas: Mapping[str, SchemaEntry]) -> dict[str, FieldType]:
    """Map the properties of a body schema to field types.

    Args:
        schema: Inline schema or ``$ref`` entry from the request body
        schemas: Named schemas of the document, used to resolve ``$ref``

    Returns:
        Field type per property name; empty when the schema is missing,
        dangling or has no properties
    """
    resolved = resolve_schema(schema, schemas)
    if resolved is None or not resolved.properties:
        return {}
    return {
        name: map_type(prop.type, prop.format, prop.nullable)
        for name, prop in resolved.properties.items()
    }


def build_input_shape(endpoint: Endpoint, schemas: Mapping[str, SchemaEntry]) -> InputShape:
    """Build the input shape of the tool generated for ``endpoint``.

    Path parameters come first and keep their declared requiredness. POST and
    PUT then add every body property as an optional field; POST leaves out
    ``id`` and a body property never replaces a path parameter of the same
    name. Query parameters are not part of the shape.

    Args:
        endpoint: Parsed endpoint
        schemas: Named schemas of the document

    Returns:
        Immutable InputShape
    """
    fields: dict[str, InputField] = {}

    for param in endpoint.path_parameters:
        fields[param.name] = InputField(
            name=param.name,
            type=map_type(param.type, param.format),
            required=param.required,
            location="path",
        )

    method = endpoint.method.upper()
    if method in BODY_METHODS and endpoint.request_body is not None:
        for name, field_type in build_body_fields(endpoint.request_body, schemas).items():
            # Callers never choose server-assigned identifiers on create.
            if method == "POST" and name == "id":
                continue
            # A path parameter keeps its own requiredness.
            if name in fields:
                continue
            fields[name] = InputField(name=name, type=field_type)

    return InputShape(MappingProxyType(fields))


__all__ = [
    "BODY_METHODS",
    "InputField",
    "InputShape",
    "build_body_fields",
    "build_input_shape",
]
