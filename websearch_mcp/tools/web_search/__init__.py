"""
Web Search Tool Module

This module provides the `web-search` capability: search the web and return
the text of each result, produced by rendering a search engine's results
page in a headless browser and scraping its markup.

Architecture:
-------------
The tool consists of three components:

1. WebSearchTool (web_search_tool.py):
   - Tool implementation served over MCP
   - Validates call arguments and serializes results
   - Orchestrates backend and extraction, absorbing backend failures

2. Backend (backend.py):
   - Abstraction for the search engine and the browser driving it
   - BraveBrowserBackend: Brave Search rendered with Playwright/Chromium
   - Handles browser launch, navigation and teardown

3. Page contents (page_contents.py):
   - Reduces the rendered HTML to a bounded list of text results
   - Ordered selector chains that degrade gracefully as the markup changes

Example Usage:
--------------
    tool = WebSearchTool(backend=BraveBrowserBackend())
    content = await tool.process({"query": "rust programming", "numResults": 3})
    # content[0].text == '[{"fullContent": "..."}, ...]'
"""

from .backend import Backend, BackendError, BraveBrowserBackend
from .page_contents import ExtractedResult, extract_results
from .web_search_tool import (
    InvalidArgumentsError,
    SearchArguments,
    SearchOptions,
    WebSearchTool,
)

__all__ = [
    "Backend",
    "BackendError",
    "BraveBrowserBackend",
    "ExtractedResult",
    "extract_results",
    "InvalidArgumentsError",
    "SearchArguments",
    "SearchOptions",
    "WebSearchTool",
]
