import pytest
from playwright.async_api import Error as PlaywrightError

from websearch_mcp.tools.web_search import BackendError, BraveBrowserBackend, WebSearchTool
from websearch_mcp.tools.web_search import backend as backend_module
from websearch_mcp.tools.web_search.backend import with_retries


class FakePage:
    def __init__(self, html: str, goto_error: Exception | None):
        self.html = html
        self.goto_error = goto_error
        self.visits: list[tuple[str, dict]] = []

    async def goto(self, url: str, **kwargs):
        self.visits.append((url, kwargs))
        if self.goto_error is not None:
            raise self.goto_error

    async def content(self) -> str:
        return self.html


class FakeContext:
    def __init__(self, page: FakePage):
        self.page = page
        self.closed = False

    async def new_page(self) -> FakePage:
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page: FakePage):
        self.page = page
        self.contexts: list[tuple[FakeContext, dict]] = []
        self.closed = False

    async def new_context(self, **kwargs) -> FakeContext:
        context = FakeContext(self.page)
        self.contexts.append((context, kwargs))
        return context

    async def close(self):
        self.closed = True


class FakeChromium:
    def __init__(self, browser: FakeBrowser, launch_error: Exception | None):
        self.browser = browser
        self.launch_error = launch_error
        self.launches: list[dict] = []

    async def launch(self, **kwargs) -> FakeBrowser:
        self.launches.append(kwargs)
        if self.launch_error is not None:
            raise self.launch_error
        return self.browser


class FakePlaywright:
    """Replaces `async_playwright()` in the backend module."""

    def __init__(self, html: str = "<html></html>", launch_error=None, goto_error=None):
        self.page = FakePage(html, goto_error)
        self.browser = FakeBrowser(self.page)
        self.chromium = FakeChromium(self.browser, launch_error)

    def __call__(self):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


@pytest.fixture
def install_playwright(monkeypatch):
    def install(**kwargs) -> FakePlaywright:
        fake = FakePlaywright(**kwargs)
        monkeypatch.setattr(backend_module, "async_playwright", fake)
        return fake

    return install


@pytest.mark.unit
class TestSearchUrl:
    def test_query_is_url_encoded(self):
        url = BraveBrowserBackend().search_url("rust & c++ / go?", 7)
        assert url == "https://search.brave.com/search?q=rust%20%26%20c%2B%2B%20%2F%20go%3F&source=web&limit=7"


@pytest.mark.unit
class TestFetch:
    @pytest.mark.asyncio
    async def test_renders_page_with_desktop_profile(self, install_playwright):
        fake = install_playwright(html="<html><body>results</body></html>")
        html = await BraveBrowserBackend().search("rust", 3)

        assert html == "<html><body>results</body></html>"
        [launch] = fake.chromium.launches
        assert launch["headless"] is True
        assert "--disable-blink-features=AutomationControlled" in launch["args"]
        [(context, options)] = fake.browser.contexts
        assert options["viewport"] == {"width": 1366, "height": 768}
        assert options["locale"] == "en-US"
        assert options["timezone_id"] == "America/New_York"
        assert "Chrome/" in options["user_agent"]
        [(url, goto_options)] = fake.page.visits
        assert url.endswith("?q=rust&source=web&limit=3")
        assert goto_options == {"wait_until": "domcontentloaded"}

    @pytest.mark.asyncio
    async def test_releases_browser_after_success(self, install_playwright):
        fake = install_playwright()
        await BraveBrowserBackend().search("rust", 3)
        [(context, _)] = fake.browser.contexts
        assert context.closed
        assert fake.browser.closed

    @pytest.mark.asyncio
    async def test_releases_browser_when_navigation_fails(self, install_playwright):
        fake = install_playwright(goto_error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
        with pytest.raises(BackendError, match="ERR_NAME_NOT_RESOLVED"):
            await BraveBrowserBackend().search("rust", 3)
        [(context, _)] = fake.browser.contexts
        assert context.closed
        assert fake.browser.closed

    @pytest.mark.asyncio
    async def test_navigation_timeout_passed_when_configured(self, install_playwright):
        fake = install_playwright()
        await BraveBrowserBackend(navigation_timeout_ms=5000.0).search("rust", 3)
        [(_, goto_options)] = fake.page.visits
        assert goto_options["timeout"] == 5000.0

    @pytest.mark.asyncio
    async def test_launch_failure_raises_backend_error(self, install_playwright):
        install_playwright(launch_error=PlaywrightError("Executable doesn't exist"))
        with pytest.raises(BackendError):
            await BraveBrowserBackend().search("rust", 3)


@pytest.mark.unit
class TestLaunchFailureThroughTool:
    @pytest.mark.asyncio
    async def test_tool_call_succeeds_with_no_results(self, install_playwright):
        install_playwright(launch_error=PlaywrightError("Executable doesn't exist"))
        tool = WebSearchTool(backend=BraveBrowserBackend())
        content = await tool.process({"query": "rust programming"})
        assert content[0].text == "[]"


@pytest.mark.unit
def test_no_retries_keeps_function():
    async def fetch(url):
        return url

    assert with_retries(fetch, 0, 10.0) is fetch


@pytest.mark.unit
class TestRetries:
    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self, install_playwright):
        fake = install_playwright()
        browser = fake.chromium.browser
        attempts = []

        async def flaky_launch(**kwargs):
            attempts.append(kwargs)
            if len(attempts) == 1:
                raise PlaywrightError("Target page, context or browser has been closed")
            return browser

        fake.chromium.launch = flaky_launch
        html = await BraveBrowserBackend(num_retries=2, max_wait_time=2.0).search("rust", 3)
        assert html == "<html></html>"
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_num_retries_counts_the_first_attempt(self, install_playwright):
        fake = install_playwright(launch_error=PlaywrightError("Executable doesn't exist"))
        with pytest.raises(BackendError, match="Executable doesn't exist"):
            await BraveBrowserBackend(num_retries=1).search("rust", 3)
        assert len(fake.chromium.launches) == 1
