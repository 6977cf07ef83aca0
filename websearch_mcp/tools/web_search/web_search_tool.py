"""
Web Search Tool Implementation

This module implements WebSearchTool, the `web-search` MCP tool: it searches
the web through a Backend and returns the text of each result.

Core Functionality:
-------------------
1. Argument validation: the raw call arguments are validated once, through
   SearchArguments.from_arguments(), before anything else happens
2. Orchestration: perform_web_search() fetches the rendered results page
   from the backend and hands it to the extraction pipeline
3. Serialization: results are returned as one text content item holding a
   JSON array of {"fullContent": ...} objects

Failure Policy:
---------------
- Invalid arguments raise InvalidArgumentsError; the MCP server reports it
  to the caller as a failed tool call
- Backend failures (browser launch, navigation, reading the page) are
  logged and reported as zero results; the call itself still succeeds

Result Limits:
--------------
- `numResults` falls back to DEFAULT_NUM_RESULTS (5) when absent or falsy,
  which is also the default advertised in the input schema
- SearchOptions never lets a non-positive limit reach the extraction
  pipeline
"""

import json
from typing import Any

import pydantic
import structlog
from mcp import types

from ..tool import Tool
from .backend import Backend, BraveBrowserBackend
from .page_contents import ExtractedResult, extract_results

logger = structlog.stdlib.get_logger(component=__name__)

TOOL_NAME = "web-search"

# Fallback for numResults, advertised in the input schema as well
DEFAULT_NUM_RESULTS = 5

# Limit used when a non-positive num_results reaches the orchestrator
DEFAULT_SEARCH_LIMIT = 10

INVALID_ARGUMENTS_MESSAGE = "Invalid arguments: args must be an object and should contain query"


class InvalidArgumentsError(ValueError):
    """
    Raised when a tool call carries unusable arguments.

    Examples:
    - Arguments are not an object (or are null)
    - `query` is missing or empty
    - `numResults` is not an integer

    The MCP server reports this to the caller as a failed tool call, so the
    caller can correct the arguments and try again.
    """
    pass


class SearchArguments(pydantic.BaseModel):
    """
    Validated arguments of a `web-search` call.

    Attributes:
        query: Non-empty search query
        num_results: Requested number of results (wire name `numResults`)
    """
    model_config = pydantic.ConfigDict(populate_by_name=True, extra="ignore")

    query: str = pydantic.Field(min_length=1)
    num_results: int | None = pydantic.Field(default=None, alias="numResults")

    @classmethod
    def from_arguments(cls, arguments: Any) -> "SearchArguments":
        """
        Single validation entry point for raw tool-call arguments.

        Args:
            arguments: Whatever the client sent as the call arguments

        Returns:
            SearchArguments with `num_results` defaulted when absent or falsy

        Raises:
            InvalidArgumentsError: If the arguments cannot be used
        """
        if not isinstance(arguments, dict):
            raise InvalidArgumentsError(INVALID_ARGUMENTS_MESSAGE)
        try:
            parsed = cls.model_validate(arguments)
        except pydantic.ValidationError as e:
            raise InvalidArgumentsError(f"{INVALID_ARGUMENTS_MESSAGE} ({e.error_count()} validation errors)") from e
        if not parsed.num_results:
            parsed.num_results = DEFAULT_NUM_RESULTS
        return parsed


class SearchOptions(pydantic.BaseModel):
    """Query and result limit handed to the orchestrator."""
    query: str = pydantic.Field(min_length=1)
    num_results: int = DEFAULT_SEARCH_LIMIT

    @pydantic.field_validator("num_results", mode="before")
    @classmethod
    def _positive_limit(cls, value: Any) -> Any:
        if not value or (isinstance(value, int) and value <= 0):
            return DEFAULT_SEARCH_LIMIT
        return value


class WebSearchTool(Tool):
    """
    Searches the web and returns the text of each result.

    Configuration:
    --------------
    - backend: Backend used to render the search-results page
    - include_descriptions: Also return the snippet of each result as
      `description` (off by default; only `fullContent` is returned)

    Attributes:
        backend: The Backend instance used for every search
    """

    def __init__(
        self,
        backend: Backend | None = None,
        include_descriptions: bool = False,
    ):
        self.backend = backend if backend is not None else BraveBrowserBackend()
        self.include_descriptions = include_descriptions

    @property
    def name(self) -> str:
        return TOOL_NAME

    def description(self) -> str:
        return "Performs a web search, parses the result page and returns the text of each result"

    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Query string to execute.",
                },
                "numResults": {
                    "type": "integer",
                    "description": f"Limit number of results. Defaults to {DEFAULT_NUM_RESULTS}",
                    "default": DEFAULT_NUM_RESULTS,
                },
            },
            "required": ["query"],
        }

    async def perform_web_search(self, options: SearchOptions) -> list[ExtractedResult]:
        """
        Fetch the search-results page for `options.query` and extract results.

        Any failure while fetching the page is logged and reported as an
        empty list, never raised.
        """
        logger.info(
            "Tool call received: web-search",
            query=options.query,
            num_results=options.num_results,
        )
        try:
            html = await self.backend.search(options.query, options.num_results)
        except Exception:
            logger.exception("Unable to fetch search results", backend=self.backend.source)
            return []
        return extract_results(html, options.num_results)

    async def _process(self, arguments: Any) -> list[types.TextContent]:
        logger.info("Tool arguments", arguments=json.dumps(arguments, default=str))
        search_args = SearchArguments.from_arguments(arguments)
        results = await self.perform_web_search(
            SearchOptions(query=search_args.query, num_results=search_args.num_results)
        )
        payload = [result.to_public(self.include_descriptions) for result in results]
        return [types.TextContent(type="text", text=json.dumps(payload))]
