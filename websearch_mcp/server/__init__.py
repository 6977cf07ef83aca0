"""
MCP Streamable HTTP server.

- registry.py: session id to transport table
- transport.py: per-session transport running the session's protocol server
- router.py: classifies `/mcp` requests and manages the session lifecycle
- app.py: Starlette application and tool server factory
"""

from .app import build_tool_server, create_app
from .registry import SessionExistsError, SessionRegistry
from .router import McpRouter
from .transport import SessionTransport

__all__ = [
    "build_tool_server",
    "create_app",
    "McpRouter",
    "SessionExistsError",
    "SessionRegistry",
    "SessionTransport",
]
