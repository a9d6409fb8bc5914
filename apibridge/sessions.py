"""Session registry: one Streamable HTTP transport per MCP session.

A session starts when a request without an ``Mcp-Session-Id`` header carries
an ``initialize`` call and the new transport accepts it. It ends when its
transport closes or the client sends ``DELETE``. Requests naming any other
identifier are rejected; they never open a new session.
"""
from __future__ import annotations

import contextlib
import json
import logging
import uuid
from typing import Any, AsyncIterator, Callable

import anyio
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.lowlevel import Server
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from mcp.types import INTERNAL_ERROR, JSONRPCRequest
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.types import Message, Receive, Scope, Send

from .errors import SessionError

logger = logging.getLogger(__name__)

MISSING_SESSION_MESSAGE = "Invalid request: Missing session ID or not an initialize request"
INVALID_SESSION_MESSAGE = "Invalid or missing session ID"

TransportFactory = Callable[[str], StreamableHTTPServerTransport]


def new_session_id() -> str:
    return str(uuid.uuid4())


def is_initialize_request(payload: Any) -> bool:
    """Return True if ``payload`` is a JSON-RPC ``initialize`` request."""
    try:
        request = JSONRPCRequest.model_validate(payload)
    except ValidationError:
        return False
    return request.method == "initialize"


def jsonrpc_error_response(code: int, message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "error": {"code": code, "message": message}, "id": None},
        status_code=status_code,
    )


def _replay_body(body: bytes, receive: Receive) -> Receive:
    """Return a ``receive`` that yields an already-read body once more."""
    consumed = False

    async def replay() -> Message:
        nonlocal consumed
        if not consumed:
            consumed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


class SessionRegistry:
    """Owns the mapping from session identifier to transport.

    A new session is pending until its transport answers ``initialize`` with
    a 2xx status; only then is it recorded and routable. A rejected
    ``initialize`` tears the pending session down again.

    Use :meth:`run` to provide the task group session servers live in; the
    registry itself is an ASGI app for the ``/mcp`` route.
    """

    def __init__(
        self,
        server: Server,
        *,
        json_response: bool = False,
        session_id_factory: Callable[[], str] = new_session_id,
        transport_factory: TransportFactory | None = None,
    ) -> None:
        self._server = server
        self.json_response = json_response
        self._session_id_factory = session_id_factory
        self._transport_factory = transport_factory or self._default_transport
        self._transports: dict[str, StreamableHTTPServerTransport] = {}
        self._pending: dict[str, StreamableHTTPServerTransport] = {}
        self._task_group: TaskGroup | None = None

    def _default_transport(self, session_id: str) -> StreamableHTTPServerTransport:
        return StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=self.json_response,
        )

    def __len__(self) -> int:
        return len(self._transports)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._transports

    @property
    def session_ids(self) -> list[str]:
        return list(self._transports)

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        if self._task_group is not None:
            raise RuntimeError("SessionRegistry is already running")
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            try:
                yield
            finally:
                tg.cancel_scope.cancel()
        self._task_group = None
        self._transports.clear()
        self._pending.clear()

    def get(self, session_id: str) -> StreamableHTTPServerTransport:
        """Return the live transport for ``session_id``.

        Raises:
            SessionError: If no such session is active.
        """
        transport = self._transports.get(session_id)
        if transport is None:
            raise SessionError(INVALID_SESSION_MESSAGE)
        return transport

    async def create(self) -> tuple[str, StreamableHTTPServerTransport]:
        """Start a pending session under a fresh identifier.

        Returns:
            Tuple of (session id, connected transport). The session is not
            routable until :meth:`confirm` records it.

        Raises:
            RuntimeError: If the registry is not running or the identifier is taken.
        """
        if self._task_group is None:
            raise RuntimeError("SessionRegistry is not running")
        session_id = self._session_id_factory()
        if session_id in self._transports or session_id in self._pending:
            raise RuntimeError(f"Session ID collision: {session_id}")
        transport = self._transport_factory(session_id)
        await self._task_group.start(self._run_session, session_id, transport)
        return session_id, transport

    def confirm(self, session_id: str, transport: StreamableHTTPServerTransport) -> bool:
        """Record a pending session whose transport accepted ``initialize``."""
        if self._pending.get(session_id) is not transport:
            return False
        del self._pending[session_id]
        self._transports[session_id] = transport
        logger.info("New session created: %s", session_id)
        return True

    async def discard(self, session_id: str, transport: StreamableHTTPServerTransport) -> None:
        """Drop a session that never got confirmed and stop its server."""
        if self._pending.get(session_id) is transport:
            del self._pending[session_id]
        self.close(session_id, transport)
        await transport.terminate()
        logger.info("Session discarded: %s", session_id)

    def close(self, session_id: str, transport: StreamableHTTPServerTransport | None = None) -> bool:
        """Forget ``session_id``; with ``transport`` given, only if it is still the mapped one."""
        current = self._transports.get(session_id)
        if current is None or (transport is not None and current is not transport):
            return False
        del self._transports[session_id]
        return True

    async def terminate(self, session_id: str) -> None:
        transport = self.get(session_id)
        await transport.terminate()
        if self.close(session_id):
            logger.info("Session terminated: %s", session_id)

    async def _run_session(
        self,
        session_id: str,
        transport: StreamableHTTPServerTransport,
        *,
        task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        async with transport.connect() as (read_stream, write_stream):
            self._pending[session_id] = transport
            task_status.started()
            try:
                await self._server.run(
                    read_stream,
                    write_stream,
                    self._server.create_initialization_options(),
                    stateless=False,
                )
            except Exception:
                logger.exception("Session %s stopped with an error", session_id)
            finally:
                if self._pending.get(session_id) is transport:
                    del self._pending[session_id]
                if self.close(session_id, transport):
                    logger.info("Session closed: %s", session_id)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.handle_request(scope, receive, send)

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        response_started = False

        async def tracked_send(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self._route(request, scope, receive, tracked_send)
        except SessionError as e:
            logger.warning("Rejected %s %s: %s", request.method, request.url.path, e.message)
            if not response_started:
                await jsonrpc_error_response(e.error.code, e.message, 400)(scope, receive, send)
        except Exception as e:
            logger.exception("Error handling %s %s", request.method, request.url.path)
            if not response_started:
                response = jsonrpc_error_response(INTERNAL_ERROR, str(e) or "Internal server error", 500)
                await response(scope, receive, send)

    async def _route(self, request: Request, scope: Scope, receive: Receive, send: Send) -> None:
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)

        if session_id:
            if session_id not in self._transports:
                message = MISSING_SESSION_MESSAGE if request.method == "POST" else INVALID_SESSION_MESSAGE
                raise SessionError(message)
            transport = self._transports[session_id]
            await transport.handle_request(scope, receive, send)
            if request.method == "DELETE" and self.close(session_id, transport):
                logger.info("Session terminated: %s", session_id)
            return

        if request.method != "POST":
            raise SessionError(INVALID_SESSION_MESSAGE)

        body = await request.body()
        try:
            payload = json.loads(body)
        except ValueError:
            payload = None
        if not is_initialize_request(payload):
            raise SessionError(MISSING_SESSION_MESSAGE)

        session_id, transport = await self.create()
        confirmed = False

        async def confirming_send(message: Message) -> None:
            nonlocal confirmed
            # Record the session before the client can see its identifier.
            if message["type"] == "http.response.start" and 200 <= message["status"] < 300:
                confirmed = self.confirm(session_id, transport)
            await send(message)

        try:
            await transport.handle_request(scope, _replay_body(body, receive), confirming_send)
        finally:
            if not confirmed:
                with anyio.CancelScope(shield=True):
                    await self.discard(session_id, transport)


__all__ = [
    "INVALID_SESSION_MESSAGE",
    "MISSING_SESSION_MESSAGE",
    "SessionRegistry",
    "is_initialize_request",
    "jsonrpc_error_response",
    "new_session_id",
]
