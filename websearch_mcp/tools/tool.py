"""
Base Tool Abstract Class

This module defines the interface every tool served over MCP implements.
A tool is a named capability with a JSON input schema; the MCP server lists
it to clients and routes `tools/call` requests with a matching name to it.

Key Concepts:
-------------
1. Tool Listing: `as_mcp_tool()` describes the tool (name, description,
   input schema) for `tools/list`
2. Tool Invocation: `process()` receives the raw call arguments and returns
   MCP content items
3. Error Reporting: exceptions raised from `process()` are turned into error
   tool results by the MCP server, so tools raise instead of returning
   error text

Architecture:
-------------
- Tools receive arguments exactly as the client sent them; validation is the
  tool's own responsibility
- `process()` logs and re-raises; concrete tools override `_process()`
"""

from abc import ABC, abstractmethod
from typing import Any

import structlog
from mcp import types

logger = structlog.stdlib.get_logger(component=__name__)


class Tool(ABC):
    """
    Something a remote client can call.

    Tools expose a name, a human-readable description and a JSON schema for
    their arguments. Clients discover them through `tools/list` and invoke
    them through `tools/call`.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        An identifier for the tool. `tools/call` requests are routed to the tool
        whose name matches.
        """

    @abstractmethod
    def description(self) -> str:
        """Returns the text shown to clients describing what the tool does."""
        raise NotImplementedError

    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """Returns the JSON schema advertised for the call arguments."""
        raise NotImplementedError

    def as_mcp_tool(self) -> types.Tool:
        """The tool definition returned from `tools/list`."""
        return types.Tool(
            name=self.name,
            description=self.description(),
            inputSchema=self.input_schema(),
        )

    async def process(self, arguments: Any) -> list[types.TextContent]:
        """
        Public entry point for a tool call.

        Args:
            arguments: The call arguments as received from the client. No shape
                is guaranteed at this boundary.

        Returns:
            Content items of the tool result.

        Raises:
            Whatever `_process()` raises, unchanged, after it has been logged.

        Tools should NOT override this method; override `_process` below.
        """
        try:
            return await self._process(arguments)
        except Exception:
            logger.exception("Error in tool handler", tool=self.name)
            raise

    @abstractmethod
    async def _process(self, arguments: Any) -> list[types.TextContent]:
        """
        Core tool implementation that concrete tools must override.

        Args:
            arguments: Raw call arguments, validated by the implementation

        Returns:
            Content items (usually a single TextContent)
        """
        raise NotImplementedError
