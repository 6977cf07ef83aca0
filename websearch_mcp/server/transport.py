"""
Session transport.

A SessionTransport is the channel of one MCP session. It wraps the SDK's
StreamableHTTPServerTransport, runs the session's protocol server on it and
reports the two lifecycle events the router cares about:

- session initialized: the handshake response carrying the session id
  header is about to be sent to the client
- close: the session ended, because the client deleted it, the server loop
  finished, or the owning task group was cancelled

Each event fires at most once. Request/response correlation inside the
session is left to the SDK.
"""

from typing import Callable

import anyio
import structlog
from anyio.abc import TaskGroup, TaskStatus
from mcp.server.lowlevel import Server
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.types import Message, Receive, Scope, Send

logger = structlog.stdlib.get_logger(component=__name__)

SessionCallback = Callable[[str], None]


class SessionTransport:
    """
    Transport bound to exactly one MCP session.

    Args:
        session_id: Identifier announced to the client in the handshake response
        json_response: Answer POST requests with JSON instead of an SSE stream
        on_session_initialized: Called with the session id once the handshake
            succeeded
        on_close: Called with the session id once the session ended
    """

    def __init__(
        self,
        session_id: str,
        *,
        json_response: bool = False,
        on_session_initialized: SessionCallback | None = None,
        on_close: SessionCallback | None = None,
    ):
        self.session_id = session_id
        self.on_session_initialized = on_session_initialized
        self.on_close = on_close
        self._http_transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=json_response,
        )
        self._initialized = False
        self._closed = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def closed(self) -> bool:
        return self._closed

    async def connect(self, server: Server, task_group: TaskGroup) -> None:
        """Start serving `server` on this transport as a task of `task_group`."""
        await task_group.start(self._run_server, server)

    async def _run_server(
        self,
        server: Server,
        *,
        task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED,
    ) -> None:
        try:
            async with self._http_transport.connect() as (read_stream, write_stream):
                task_status.started()
                try:
                    await server.run(
                        read_stream,
                        write_stream,
                        server.create_initialization_options(),
                        stateless=False,
                    )
                except Exception:
                    logger.exception("Session server stopped with an error", session_id=self.session_id)
        finally:
            self._fire_close()

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Forward one HTTP request of this session to the SDK transport."""

        async def send_with_signal(message: Message) -> None:
            if (
                not self._initialized
                and message["type"] == "http.response.start"
                and message["status"] == 200
            ):
                self._initialized = True
                if self.on_session_initialized is not None:
                    self.on_session_initialized(self.session_id)
            await send(message)

        await self._http_transport.handle_request(scope, receive, send_with_signal)
        if self._http_transport.is_terminated:
            self._fire_close()

    async def close(self) -> None:
        """Terminate the session; the server loop exits and `on_close` fires."""
        await self._http_transport.terminate()
        self._fire_close()

    def _fire_close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.info("Session transport closed", session_id=self.session_id)
        if self.on_close is not None:
            self.on_close(self.session_id)
