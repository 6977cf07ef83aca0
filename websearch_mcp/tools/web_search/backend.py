"""
Backend Abstraction for the Web Search Tool

This module defines the backend interface that turns a search query into a
rendered search-results page. Backends are pluggable components that own all
of the browser and network I/O; the extraction of results from the page
happens elsewhere (see page_contents.py).

Architecture:
-------------
The Backend abstract class defines two operations:
1. search_url() - Build the search-engine URL for a query and result limit
2. fetch() - Retrieve the fully rendered HTML behind a URL

Concrete implementations:
- BraveBrowserBackend: Drives headless Chromium (Playwright) against
  Brave Search

Browser Profile:
----------------
Each fetch launches its own browser and opens an isolated context with a
fixed desktop profile (user agent, viewport, locale and timezone) and launch
flags that hide the usual automation markers. Navigation only waits for the
DOM to be parsed, not for the network to go idle.

The browser context and the browser are closed on every exit path before
fetch() returns.

Error Handling:
---------------
- BackendError is raised when the page cannot be retrieved
- Optional retry with exponential backoff for transient failures
"""

import logging
from abc import abstractmethod
from typing import Callable, ParamSpec, TypeVar
from urllib.parse import quote

import chz
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from tenacity import (
    after_log,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

# Chromium flags used for every launch
LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
    "--no-default-browser-check",
    "--disable-default-apps",
    "--disable-extensions",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--disable-features=TranslateUI",
    "--disable-ipc-flooding-protection",
)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)


class BackendError(Exception):
    """
    Raised when a backend cannot produce the search-results page.

    This includes:
    - Browser launch failures
    - Navigation errors and timeouts
    - Failures while reading the rendered document
    """
    pass


P = ParamSpec("P")
R = TypeVar("R")


def with_retries(
    func: Callable[P, R],
    num_retries: int,
    max_wait_time: float,
) -> Callable[P, R]:
    """
    Add retry logic with exponential backoff to `func`.

    Args:
        func: The function to wrap
        num_retries: Maximum number of attempts, the first call included
        max_wait_time: Maximum seconds to wait between attempts

    Returns:
        Wrapped function with retry logic (or original if num_retries=0)
    """
    if num_retries > 0:
        retry_decorator = retry(
            stop=stop_after_attempt(num_retries),
            wait=wait_exponential(
                multiplier=1,
                min=2,
                max=max_wait_time,
            ),
            before_sleep=before_sleep_log(logger, logging.INFO),
            after=after_log(logger, logging.INFO),
            retry=retry_if_exception_type(BackendError),
            reraise=True,
        )
        return retry_decorator(func)
    else:
        return func


@chz.chz(typecheck=True)
class Backend:
    """
    Abstract base class for search backends.

    Attributes:
        source: Human-readable description of the backend
        num_retries: Total attempts per fetch, the first one included; 0 or 1
            means a single attempt
        max_wait_time: Upper bound in seconds for the backoff between attempts
    """
    source: str = chz.field(doc="Description of the backend source")
    num_retries: int = chz.field(doc="Total attempts per fetch, the first one included", default=0)
    max_wait_time: float = chz.field(doc="Maximum backoff between attempts", default=10.0)

    @abstractmethod
    def search_url(self, query: str, limit: int) -> str:
        """Build the URL of the search-results page for `query`."""
        pass

    @abstractmethod
    async def fetch(self, url: str) -> str:
        """
        Retrieve the rendered HTML of `url`.

        Raises:
            BackendError: If the page could not be retrieved
        """
        pass

    async def search(self, query: str, limit: int) -> str:
        """Fetch the search-results page for `query`, retrying if configured."""
        fetch = with_retries(self.fetch, self.num_retries, self.max_wait_time)
        return await fetch(self.search_url(query, limit))


@chz.chz(typecheck=True)
class BraveBrowserBackend(Backend):
    """
    Backend that renders Brave Search result pages in headless Chromium.

    Brave serves its results page to regular browsers only, so the page is
    loaded through Playwright with a desktop profile rather than fetched
    over plain HTTP.

    Configuration:
        headless: Run Chromium without a window (default True)
        user_agent, viewport_width, viewport_height, locale, timezone_id:
            Browser context profile
        navigation_timeout_ms: Navigation timeout; None keeps Playwright's
            default
    """

    source: str = chz.field(doc="Description of the backend source", default="Brave Search")
    base_url: str = chz.field(doc="Search endpoint", default="https://search.brave.com/search")
    headless: bool = chz.field(doc="Run the browser headless", default=True)
    launch_args: tuple[str, ...] = chz.field(doc="Chromium command line flags", default=LAUNCH_ARGS)
    user_agent: str = chz.field(doc="User agent of the browser context", default=DEFAULT_USER_AGENT)
    viewport_width: int = chz.field(doc="Viewport width in pixels", default=1366)
    viewport_height: int = chz.field(doc="Viewport height in pixels", default=768)
    locale: str = chz.field(doc="Browser locale", default="en-US")
    timezone_id: str = chz.field(doc="Browser timezone", default="America/New_York")
    navigation_timeout_ms: float | None = chz.field(
        doc="Navigation timeout in milliseconds, None for the browser default",
        default=None,
    )

    def search_url(self, query: str, limit: int) -> str:
        return f"{self.base_url}?q={quote(query, safe='')}&source=web&limit={limit}"

    def context_options(self) -> dict:
        return {
            "user_agent": self.user_agent,
            "viewport": {"width": self.viewport_width, "height": self.viewport_height},
            "locale": self.locale,
            "timezone_id": self.timezone_id,
        }

    async def fetch(self, url: str) -> str:
        goto_options: dict = {"wait_until": "domcontentloaded"}
        if self.navigation_timeout_ms is not None:
            goto_options["timeout"] = self.navigation_timeout_ms

        try:
            async with async_playwright() as playwright:
                browser = await playwright.chromium.launch(
                    headless=self.headless, args=list(self.launch_args)
                )
                try:
                    context = await browser.new_context(**self.context_options())
                    try:
                        page = await context.new_page()
                        await page.goto(url, **goto_options)
                        return await page.content()
                    finally:
                        await context.close()
                finally:
                    await browser.close()
        except PlaywrightError as e:
            raise BackendError(f"{self.__class__.__name__} failed to load {url}: {e}") from e
