import pytest

from websearch_mcp.tools.web_search.page_contents import (
    ExtractedResult,
    extract_results,
    parse_document,
)


def _page(*blocks: str) -> str:
    return "<html><body>" + "".join(blocks) + "</body></html>"


def _web(text: str) -> str:
    return f'<div data-type="web"><a href="https://example.com">{text}</a></div>'


@pytest.mark.unit
class TestEmptyInput:
    @pytest.mark.parametrize("limit", [0, 1, 5, 10])
    def test_empty_document_returns_nothing(self, limit):
        assert extract_results("", limit) == []

    def test_whitespace_document_returns_nothing(self):
        assert extract_results("  \n\t ", 5) == []

    def test_none_document_returns_nothing(self):
        assert extract_results(None, 5) == []

    def test_parse_document_rejects_empty(self):
        assert parse_document("") is None


@pytest.mark.unit
class TestLimit:
    def test_never_more_than_limit(self):
        html = _page(*[_web(f"result {i}") for i in range(12)])
        results = extract_results(html, 5)
        assert [r.full_content for r in results] == [f"result {i}" for i in range(5)]

    def test_zero_limit_returns_nothing(self):
        assert extract_results(_page(_web("one")), 0) == []

    def test_negative_limit_returns_nothing(self):
        assert extract_results(_page(_web("one")), -3) == []

    def test_limit_larger_than_matches(self):
        html = _page(_web("a"), _web("b"))
        assert len(extract_results(html, 10)) == 2


@pytest.mark.unit
class TestSelectorChain:
    def test_fallback_selector_used_when_primary_matches_nothing(self):
        html = _page(
            '<div class="result">first</div>',
            '<div class="result">second</div>',
            '<div class="result">third</div>',
        )
        results = extract_results(html, 5)
        assert [r.full_content for r in results] == ["first", "second", "third"]

    def test_last_selector_used_when_others_match_nothing(self):
        html = _page('<section class="fdb">only brave</section>')
        assert [r.full_content for r in extract_results(html, 5)] == ["only brave"]

    def test_later_selectors_fill_remaining_quota(self):
        html = _page(
            _web("web 1"),
            _web("web 2"),
            '<div class="fdb">fdb 1</div>',
            '<div class="fdb">fdb 2</div>',
            '<div class="fdb">fdb 3</div>',
        )
        results = extract_results(html, 4)
        assert [r.full_content for r in results] == ["web 1", "web 2", "fdb 1", "fdb 2"]

    def test_later_selectors_skipped_once_quota_is_met(self):
        html = _page(_web("web 1"), _web("web 2"), '<div class="result">other</div>')
        results = extract_results(html, 2)
        assert [r.full_content for r in results] == ["web 1", "web 2"]

    def test_node_matching_several_selectors_is_collected_once(self):
        html = _page(
            '<div data-type="web" class="snippet fdb">first</div>',
            '<div data-type="web" class="snippet fdb">second</div>',
        )
        results = extract_results(html, 5)
        assert [r.full_content for r in results] == ["first", "second"]

    def test_no_selector_matches(self):
        assert extract_results(_page("<p>nothing to see</p>"), 5) == []


@pytest.mark.unit
class TestContent:
    def test_full_content_is_trimmed_text(self):
        html = _page('<div data-type="web">\n   <span>Rust</span> <b>Programming</b>\n  </div>')
        [result] = extract_results(html, 1)
        assert result.full_content == "Rust Programming"

    def test_description_prefers_snippet_content(self):
        html = _page(
            '<div data-type="web">'
            "<p>paragraph</p>"
            '<div class="snippet-content">the snippet</div>'
            "</div>"
        )
        [result] = extract_results(html, 1)
        assert result.description == "the snippet"

    def test_description_falls_back_to_paragraph(self):
        html = _page('<div data-type="web"><h2>Title</h2><p> first para </p><p>second</p></div>')
        [result] = extract_results(html, 1)
        assert result.description == "first para"

    def test_description_empty_without_snippet(self):
        html = _page('<div data-type="web"><span>just text</span></div>')
        [result] = extract_results(html, 1)
        assert result.description == ""

    def test_container_itself_is_not_its_own_snippet(self):
        html = _page('<div data-type="web" class="snippet"><span>text</span></div>')
        [result] = extract_results(html, 1)
        assert result.description == ""


@pytest.mark.unit
class TestExtractedResult:
    def test_public_form_only_has_full_content(self):
        result = ExtractedResult(full_content="text", description="snippet")
        assert result.to_public() == {"fullContent": "text"}

    def test_public_form_with_description(self):
        result = ExtractedResult(full_content="text", description="snippet")
        assert result.to_public(include_description=True) == {
            "fullContent": "text",
            "description": "snippet",
        }

    def test_accepts_wire_name(self):
        assert ExtractedResult(fullContent="text").full_content == "text"
