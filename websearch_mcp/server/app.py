"""
MCP server for web search.

This module assembles the ASGI application that serves the `web-search`
tool over MCP's Streamable HTTP transport.

Endpoints:
    POST   /mcp  - handshake (`initialize`) or message for an existing session
    GET    /mcp  - server-to-client event stream of an existing session
    DELETE /mcp  - terminate an existing session

Every new session gets its own low-level MCP server, built by
build_tool_server() and exposing the single `web-search` tool. Session
servers run in the router's task group, which lives as long as the
application's lifespan.

Usage:
    app = create_app(ServerConfig.from_env())
    uvicorn.run(app, host="0.0.0.0", port=9000)
"""

import contextlib
from typing import Any, AsyncIterator

import structlog
from mcp import types
from mcp.server.lowlevel import Server
from starlette.applications import Starlette
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from .. import __version__
from ..config import ServerConfig
from ..tools.tool import Tool
from ..tools.web_search import BraveBrowserBackend, WebSearchTool
from .registry import SessionRegistry
from .router import McpRouter
from .transport import SessionTransport

logger = structlog.stdlib.get_logger(component=__name__)


def build_tool_server(tool: Tool, name: str, version: str = __version__) -> Server:
    """
    Build a low-level MCP server exposing `tool` as its only tool.

    Exceptions raised by the tool are left to the MCP server, which reports
    them to the caller as an error tool result.
    """
    server = Server(name=name, version=version)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [tool.as_mcp_tool()]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[types.TextContent]:
        if name != tool.name:
            raise ValueError(f"Unknown tool: {name}")
        return await tool.process(arguments)

    return server


class McpEndpoint:
    """ASGI endpoint for `/mcp`, dispatching on the HTTP method."""

    def __init__(self, router: McpRouter):
        self.router = router

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["method"] == "POST":
            await self.router.handle_transport_request(scope, receive, send)
        else:
            await self.router.handle_session_request(scope, receive, send)


def build_web_search_tool(config: ServerConfig) -> WebSearchTool:
    backend = BraveBrowserBackend(
        num_retries=config.search_num_retries,
        navigation_timeout_ms=config.search_navigation_timeout_ms,
    )
    return WebSearchTool(backend=backend, include_descriptions=config.search_include_descriptions)


def create_app(
    config: ServerConfig,
    tool: Tool | None = None,
    registry: SessionRegistry[SessionTransport] | None = None,
) -> Starlette:
    """
    Create the Starlette application serving `tool` (the web search tool by
    default) at `/mcp`.

    Args:
        config: Server configuration
        tool: Tool exposed by every session server
        registry: Session registry, a new empty one if not provided

    Returns:
        Starlette app; `app.state.router` is the McpRouter in use
    """
    if tool is None:
        tool = build_web_search_tool(config)
    router = McpRouter(
        registry if registry is not None else SessionRegistry(),
        lambda: build_tool_server(tool, config.name),
        json_response=config.json_response,
        max_body_bytes=config.max_body_bytes,
    )

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        async with router.run():
            logger.info(f"{config.name} running on {config.port}")
            yield
        logger.info(f"{config.name} stopped")

    app = Starlette(
        routes=[Route("/mcp", endpoint=McpEndpoint(router), methods=["GET", "POST", "DELETE"])],
        lifespan=lifespan,
    )
    app.state.router = router
    return app
