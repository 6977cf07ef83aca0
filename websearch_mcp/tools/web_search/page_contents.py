"""
Result Extraction for the Web Search Tool

This module reduces a rendered search-results page to a bounded list of text
results. It does no I/O and keeps no state: the input is the raw HTML the
backend retrieved, the output is a list of ExtractedResult objects.

Search engines change their markup without notice, so extraction is driven by
two ordered selector chains instead of a single query:

1. Result containers (RESULT_SELECTORS):
   - One CSS selector per known layout of the result list, newest first
   - Every selector is tried in order until the result limit is reached
   - A selector that matches nothing is skipped (the page may use an older
     or newer layout)
   - Later selectors only fill the quota left over by earlier ones

2. Snippets (SNIPPET_SELECTORS):
   - Looked up inside each result container
   - The first selector with any match wins
   - If none matches, the description stays empty

The full visible text of a container is always kept as `full_content`; the
snippet is only a best-effort `description`.

Example:
    >>> html = '<div data-type="web"><p>Rust is fast</p></div>'
    >>> extract_results(html, limit=5)
    [ExtractedResult(full_content='Rust is fast', description='Rust is fast')]
"""

from __future__ import annotations

import logging

import lxml.etree
import lxml.html
import pydantic
from cssselect import HTMLTranslator
from lxml.cssselect import CSSSelector

logger = logging.getLogger(__name__)


# Result containers, most recent Brave layout first
RESULT_SELECTORS = (
    '[data-type="web"]',  # Main Brave results
    ".result",  # Alternative format
    ".fdb",  # Brave specific format
)

# Snippet elements inside a result container
SNIPPET_SELECTORS = (
    ".snippet-content",  # Brave specific
    ".snippet",  # Generic
    ".description",  # Alternative
    "p",  # Fallback paragraph
)

_translator = HTMLTranslator()


class ExtractedResult(pydantic.BaseModel):
    """
    A single search result reduced to text.

    Attributes:
        full_content: All visible text of the result container, trimmed
        description: Text of the snippet element, or "" if none was found
    """
    model_config = pydantic.ConfigDict(populate_by_name=True)

    full_content: str = pydantic.Field(alias="fullContent")
    description: str = ""

    def to_public(self, include_description: bool = False) -> dict[str, str]:
        """Wire representation returned to tool callers."""
        if include_description:
            return self.model_dump(by_alias=True)
        return self.model_dump(by_alias=True, include={"full_content"})


def _descendant_selector(css: str) -> lxml.etree.XPath:
    """Compiles a CSS selector that never matches the context node itself."""
    return lxml.etree.XPath(_translator.css_to_xpath(css, prefix="descendant::"))


_RESULT_CHAIN = [(css, CSSSelector(css, translator="html")) for css in RESULT_SELECTORS]
_SNIPPET_CHAIN = [(css, _descendant_selector(css)) for css in SNIPPET_SELECTORS]


def get_text(node: lxml.html.HtmlElement) -> str:
    """Returns the concatenated text of a node and its descendants, trimmed."""
    return "".join(node.itertext()).strip()


def extract_content(node: lxml.html.HtmlElement) -> ExtractedResult:
    """Extracts the full text and the snippet of one result container."""
    full_content = get_text(node)

    description = ""
    for _css, selector in _SNIPPET_CHAIN:
        matches = selector(node)
        if matches:
            description = get_text(matches[0])
            break

    return ExtractedResult(full_content=full_content, description=description)


def parse_document(html: str | None) -> lxml.html.HtmlElement | None:
    """Parses an HTML document, returning None for empty or unparsable input."""
    if not html or not html.strip():
        return None
    try:
        return lxml.html.fromstring(html)
    except (lxml.etree.LxmlError, ValueError) as e:
        logger.warning("Unable to parse search results page: %s", e)
        return None


def extract_results(html: str | None, limit: int) -> list[ExtractedResult]:
    """
    Reduce a search-results page to at most `limit` results.

    Args:
        html: Rendered HTML of the search-results page
        limit: Maximum number of results to return

    Returns:
        Results in selector order, then document order. Never longer than
        `limit`; empty for an empty document or a non-positive limit.
    """
    results: list[ExtractedResult] = []
    if limit <= 0:
        return results

    root = parse_document(html)
    if root is None:
        return results

    collected: set[lxml.html.HtmlElement] = set()
    for css, selector in _RESULT_CHAIN:
        if len(results) >= limit:
            break
        nodes = selector(root)
        logger.info("Found %d elements for %s", len(nodes), css)
        for node in nodes:
            if len(results) >= limit:
                break
            # the same container can carry several of the chain's classes
            if node in collected:
                continue
            collected.add(node)
            results.append(extract_content(node))

    return results
