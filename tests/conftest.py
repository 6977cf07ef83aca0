import pytest

from websearch_mcp.tools.web_search import BackendError, WebSearchTool

RESULTS_PAGE = """
<html><body>
<div id="results">
  <div class="snippet" data-type="web">
    <a href="https://www.rust-lang.org/">Rust Programming Language</a>
    <div class="snippet-content">A language empowering everyone.</div>
  </div>
  <div class="snippet" data-type="web">
    <a href="https://doc.rust-lang.org/book/">The Rust Programming Language book</a>
    <div class="snippet-content">An introductory book about Rust.</div>
  </div>
  <div class="snippet" data-type="web">
    <a href="https://en.wikipedia.org/wiki/Rust">Rust - Wikipedia</a>
    <p>Rust is a general-purpose programming language.</p>
  </div>
</div>
</body></html>
"""


class FakeBackend:
    """Stands in for a search backend; records the searches it served."""

    source = "fake"

    def __init__(self, html: str = RESULTS_PAGE, error: Exception | None = None):
        self.html = html
        self.error = error
        self.searches: list[tuple[str, int]] = []

    async def search(self, query: str, limit: int) -> str:
        self.searches.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.html


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def failing_backend() -> FakeBackend:
    return FakeBackend(error=BackendError("browser failed to launch"))


@pytest.fixture
def tool(backend) -> WebSearchTool:
    return WebSearchTool(backend=backend)
