"""Error taxonomy for document loading, tool dispatch and session routing.

Every error is an ``McpError`` so that a failure raised from inside a tool
handler reaches the caller in the protocol's own error shape.
"""
from __future__ import annotations

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, ErrorData


class BridgeError(McpError):
    """Base class for apibridge errors."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(ErrorData(code=self.code, message=message))
        self.message = message


class FetchError(BridgeError):
    """The document or a remote call failed at the transport level."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class RemoteStatusError(BridgeError):
    """The remote API answered with a non-2xx status."""

    def __init__(self, message: str, *, url: str, status_code: int, body: str = "") -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.body = body


class ClientError(RemoteStatusError):
    code = INVALID_PARAMS

    def __init__(self, message: str, *, url: str = "", status_code: int = 400, body: str = "") -> None:
        super().__init__(message, url=url, status_code=status_code, body=body)


class NotFoundError(RemoteStatusError):
    code = INVALID_PARAMS


class UpstreamError(RemoteStatusError):
    pass


class UnclassifiedError(RemoteStatusError):
    pass


class SessionError(BridgeError):
    """A call named an unknown session, or opened none without initializing."""

    code = INVALID_REQUEST


def error_for_status(status_code: int, url: str, body: str) -> RemoteStatusError:
    """Map a non-2xx remote status to its error class."""
    if status_code == 400:
        return ClientError(f"Bad Request: {body}", url=url, status_code=status_code, body=body)
    if status_code == 404:
        return NotFoundError(f"Resource not found: {url}", url=url, status_code=status_code, body=body)
    if 500 <= status_code < 600:
        return UpstreamError(
            f"Server Error ({status_code}): {body}", url=url, status_code=status_code, body=body
        )
    return UnclassifiedError(
        f"API Error ({status_code}): {body}", url=url, status_code=status_code, body=body
    )


__all__ = [
    "BridgeError",
    "FetchError",
    "RemoteStatusError",
    "ClientError",
    "NotFoundError",
    "UpstreamError",
    "UnclassifiedError",
    "SessionError",
    "error_for_status",
]
