"""
MCP request router.

Turns the stateless `/mcp` HTTP endpoint into stateful MCP sessions. Every
inbound request is classified by its `mcp-session-id` header and, for POST
requests, by its body:

1. Known session id: the request is forwarded to that session's transport
2. No session id and an `initialize` request: a new session is created. A
   transport with a fresh id is built, a new tool server is connected to it,
   and the transport registers itself once the handshake succeeds and
   unregisters itself when it closes
3. Anything else: rejected with a JSON-RPC error (code -32000) without
   touching the registry

POST bodies larger than the configured limit are refused with 413 before any
classification. GET and DELETE requests only ever address an existing
session.
"""

import contextlib
from typing import AsyncIterator, Callable
from uuid import uuid4

import anyio
import pydantic
import structlog
from anyio.abc import TaskGroup
from mcp.server.lowlevel import Server
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER
from mcp.types import JSONRPCMessage, JSONRPCRequest
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.types import Message, Receive, Scope, Send

from ..config import DEFAULT_MAX_BODY_BYTES
from .registry import SessionRegistry
from .transport import SessionTransport

logger = structlog.stdlib.get_logger(component=__name__)

BAD_REQUEST_CODE = -32000
NO_VALID_SESSION_MESSAGE = "Bad Request: No valid session ID provided"
INVALID_SESSION_MESSAGE = "Invalid/Missing Session Id"
BODY_TOO_LARGE_MESSAGE = "Payload Too Large"

ServerFactory = Callable[[], Server]
TransportFactory = Callable[..., SessionTransport]


def is_initialize_request(body: bytes) -> bool:
    """Whether `body` is a single JSON-RPC `initialize` request."""
    try:
        message = JSONRPCMessage.model_validate_json(body)
    except pydantic.ValidationError:
        return False
    return isinstance(message.root, JSONRPCRequest) and message.root.method == "initialize"


def replay_body(body: bytes, receive: Receive) -> Receive:
    """A `receive` callable that yields the already-read `body` first."""
    replayed = False

    async def receive_replayed() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return receive_replayed


async def read_body(request: Request, max_bytes: int) -> bytes | None:
    """Read the whole request body, or None as soon as it exceeds `max_bytes`."""
    content_length = request.headers.get("content-length", "")
    if content_length.isdigit() and int(content_length) > max_bytes:
        return None
    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > max_bytes:
            return None
        chunks.append(chunk)
    return b"".join(chunks)


def bad_request_response() -> JSONResponse:
    return JSONResponse(
        {
            "jsonrpc": "2.0",
            "error": {"code": BAD_REQUEST_CODE, "message": NO_VALID_SESSION_MESSAGE},
            "id": None,
        },
        status_code=400,
    )


class McpRouter:
    """
    Dispatches `/mcp` requests to per-session transports.

    Session servers run as tasks of a task group owned by the router; wrap
    the application's lifetime in `run()` so the task group exists while
    requests are served.

    Args:
        registry: Registry holding the live transports
        server_factory: Builds a new protocol server for every new session
        transport_factory: Builds the transport of a new session
        json_response: Passed to new transports
        session_id_factory: Generates identifiers for new sessions
        max_body_bytes: POST bodies above this size are refused with 413
    """

    def __init__(
        self,
        registry: SessionRegistry[SessionTransport],
        server_factory: ServerFactory,
        *,
        transport_factory: TransportFactory = SessionTransport,
        json_response: bool = False,
        session_id_factory: Callable[[], str] = lambda: uuid4().hex,
        max_body_bytes: int = DEFAULT_MAX_BODY_BYTES,
    ):
        self.registry = registry
        self.server_factory = server_factory
        self.transport_factory = transport_factory
        self.json_response = json_response
        self.session_id_factory = session_id_factory
        self.max_body_bytes = max_body_bytes
        self._task_group: TaskGroup | None = None

    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Own the task group session servers run in; cancels them on exit."""
        if self._task_group is not None:
            raise RuntimeError("McpRouter.run() is already active")
        async with anyio.create_task_group() as task_group:
            self._task_group = task_group
            try:
                yield
            finally:
                task_group.cancel_scope.cancel()
                self._task_group = None

    async def handle_transport_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """POST /mcp: handshake or message for an existing session."""
        request = Request(scope, receive)
        session_id = request.headers.get(MCP_SESSION_ID_HEADER) or None
        with structlog.contextvars.bound_contextvars(session_id=session_id or "none"):
            body = await read_body(request, self.max_body_bytes)
            if body is None:
                logger.warning("Rejected oversized request body", limit=self.max_body_bytes)
                await PlainTextResponse(BODY_TOO_LARGE_MESSAGE, status_code=413)(scope, receive, send)
                return

            logger.info(f"{request.method} /mcp", method=request.method)
            if session_id is not None and (transport := self.registry.get(session_id)) is not None:
                await transport.handle_request(scope, replay_body(body, receive), send)
                return

            if session_id is None and is_initialize_request(body):
                await self._start_session(scope, replay_body(body, receive), send)
                return

            logger.warning("Rejected request without a valid session", method=request.method)
            await bad_request_response()(scope, receive, send)

    async def handle_session_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """GET /mcp (server-to-client stream) and DELETE /mcp (terminate)."""
        request = Request(scope, receive)
        session_id = request.headers.get(MCP_SESSION_ID_HEADER) or None
        transport = self.registry.get(session_id) if session_id is not None else None
        if transport is None:
            await PlainTextResponse(INVALID_SESSION_MESSAGE, status_code=400)(scope, receive, send)
            return

        with structlog.contextvars.bound_contextvars(session_id=session_id):
            logger.info(f"{request.method} /mcp", method=request.method)
            await transport.handle_request(scope, receive, send)

    async def _start_session(self, scope: Scope, receive: Receive, send: Send) -> None:
        if self._task_group is None:
            raise RuntimeError("McpRouter.run() must be active to create sessions")

        transport: SessionTransport

        def register(session_id: str) -> None:
            self.registry.put(session_id, transport)
            logger.info("Session initialized", session_id=session_id, active_sessions=len(self.registry))

        transport = self.transport_factory(
            self.session_id_factory(),
            json_response=self.json_response,
            on_session_initialized=register,
            on_close=self._unregister,
        )
        await transport.connect(self.server_factory(), self._task_group)
        logger.info("Started the Streamable HTTP transport", session_id=transport.session_id)

        try:
            await transport.handle_request(scope, receive, send)
        finally:
            if not transport.initialized:
                # failed handshake, the session was never announced to the client
                await transport.close()

    def _unregister(self, session_id: str) -> None:
        if self.registry.remove(session_id) is not None:
            logger.info("Session removed", session_id=session_id, active_sessions=len(self.registry))
