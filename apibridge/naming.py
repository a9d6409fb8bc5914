"""Derive tool names and descriptions from endpoint method + path.

Pattern: {verb}_{resource}
  - GET collection         -> list_{resource}
  - GET collection/{id}    -> get_{singular}
  - POST collection        -> create_{singular}
  - PUT collection/{id}    -> update_{singular}
  - DELETE collection/{id} -> delete_{singular}
  - other methods          -> {method}_{singular}

API and version prefixes are ignored:
  GET /api/v1/Books      -> list_books
  GET /api/v1/Books/{id} -> get_book

Sub-resource lookups keyed by an id-like placeholder other than a trailing
``{id}`` are named after the first and last resource segments:
  GET /api/v1/Authors/authors/books/{idBook} -> get_authors_by_book
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from .swagger import Endpoint

_PREFIX_TOKENS = frozenset({"api"})
_VERSION_TOKEN = re.compile(r"^v\d+$")


@dataclass(frozen=True)
class PathShape:
    """Structured view of a path template."""

    resources: tuple[str, ...]
    placeholders: tuple[str, ...]
    ends_with_id: bool

    @property
    def id_placeholders(self) -> tuple[str, ...]:
        return tuple(name for name in self.placeholders if name.startswith("id"))


def _is_prefix(segment: str) -> bool:
    return segment in _PREFIX_TOKENS or bool(_VERSION_TOKEN.match(segment))


def split_path(path: str) -> PathShape:
    """Split a path template into resource segments and placeholders.

    Empty segments and API/version prefixes (``api``, ``v1``, ``v2`` ...) are
    dropped from the resources.

    Args:
        path: Path template such as ``/api/v1/Books/{id}``

    Returns:
        PathShape with resources in path order and placeholder names without braces
    """
    segments = [s for s in path.split("/") if s]
    placeholders = tuple(s[1:].rstrip("}") for s in segments if s.startswith("{"))
    resources = tuple(s for s in segments if not s.startswith("{") and not _is_prefix(s))
    return PathShape(resources, placeholders, path.endswith("{id}"))


def singularize(word: str) -> str:
    """Return the singular form of a resource name.

    Applied in order: ``ies`` becomes ``y``, else a trailing ``s`` is dropped,
    else the word is returned unchanged.

    Args:
        word: Lower-cased resource segment

    Returns:
        Singular form of ``word``
    """
    if word.endswith("ies"):
        return word[:-3] + "y"
    return _drop_trailing_s(word)


def _drop_trailing_s(word: str) -> str:
    return word[:-1] if word.endswith("s") else word


def _is_sub_resource_lookup(method: str, shape: PathShape) -> bool:
    return (
        len(shape.resources) > 1
        and bool(shape.id_placeholders)
        and method == "GET"
        and not shape.ends_with_id
    )


def build_tool_name(endpoint: Endpoint) -> str:
    """Return the tool name for ``endpoint``; same input, same name."""
    method = endpoint.method.upper()
    shape = split_path(endpoint.path)

    if not shape.resources:
        return f"{method.lower()}_resource"

    resource = shape.resources[0].lower()
    singular = singularize(resource)

    if _is_sub_resource_lookup(method, shape):
        # The last segment only loses a trailing "s" here.
        return f"get_{resource}_by_{_drop_trailing_s(shape.resources[-1].lower())}"

    if method == "GET":
        return f"get_{singular}" if shape.ends_with_id else f"list_{resource}"
    if method == "POST":
        return f"create_{singular}"
    if method == "PUT":
        return f"update_{singular}"
    if method == "DELETE":
        return f"delete_{singular}"
    return f"{method.lower()}_{singular}"


def build_tool_description(endpoint: Endpoint) -> str:
    """Return a one-line description for ``endpoint``.

    Phrasing follows the method and the endpoint's first tag (``Resource``
    when untagged). Book-keyed author and cover listings have fixed texts.

    Args:
        endpoint: Parsed endpoint

    Returns:
        Description such as ``"Get a single Book by ID"``
    """
    method = endpoint.method.upper()
    path = endpoint.path
    tag = endpoint.tags[0] if endpoint.tags else "Resource"
    item = tag[:-1]  # "Books" -> "Book"

    if "/books/" in path and "{idBook}" in path:
        return f"Get {tag} by book ID"
    if "/covers/" in path and "{idBook}" in path:
        return "Get cover photos by book ID"

    has_id = path.endswith("{id}")
    if method == "GET":
        return f"Get a single {item} by ID" if has_id else f"List all {tag}"
    if method == "POST":
        return f"Create a new {item}"
    if method == "PUT":
        return f"Update an existing {item} by ID"
    if method == "DELETE":
        return f"Delete a {item} by ID"
    return f"{method} operation on {tag}"


def needs_review(endpoint: Endpoint) -> bool:
    """Return True when the naming rules only loosely fit ``endpoint``.

    Such endpoints still get the rule-derived name; this is a diagnostic.
    """
    shape = split_path(endpoint.path)
    if len(shape.id_placeholders) > 1:
        return True
    if len(shape.resources) > 1 and shape.placeholders:
        return not _is_sub_resource_lookup(endpoint.method.upper(), shape)
    return False


__all__ = [
    "PathShape",
    "split_path",
    "singularize",
    "build_tool_name",
    "build_tool_description",
    "needs_review",
]
