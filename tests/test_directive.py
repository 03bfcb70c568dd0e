"""Tests for the directive extractor."""

import pytest

from og_prerender.extractor.directive import (
    DIRECTIVE_ID,
    DirectiveParseError,
    embed_directive,
    extract_directive,
    should_scan,
    strip_directive,
)
from og_prerender.models.options import ImageOptions

from conftest import render_page


class TestShouldScan:
    @pytest.mark.parametrize("route", ["/", "/blog", "/blog/post-1", "/docs/"])
    def test_documents_are_scanned(self, route):
        assert should_scan(route) is True

    @pytest.mark.parametrize("route", ["/feed.xml", "/robots.txt", "/assets/app.js", "/sitemap.xml?x=1"])
    def test_files_are_skipped(self, route):
        assert should_scan(route) is False

    @pytest.mark.parametrize("route", ["/__og_image__/html", "/blog/__og_image__/og.png"])
    def test_internal_route_is_skipped(self, route):
        assert should_scan(route) is False


class TestExtractDirective:
    def test_no_markup(self):
        assert extract_directive("") == (None, "")
        assert extract_directive(None) == (None, None)

    def test_no_marker_returns_markup_unchanged(self):
        html = render_page("Plain")
        options, out = extract_directive(html)
        assert options is None
        assert out is html

    def test_parses_and_strips(self):
        html = render_page("Post", {"provider": "browser", "width": 800, "title": "Hello"})
        options, out = extract_directive(html)

        assert options.provider == "browser"
        assert options.width == 800
        assert options.defined()["title"] == "Hello"
        assert DIRECTIVE_ID not in out
        assert "<h1>Post</h1>" in out

    def test_only_set_fields_are_defined(self):
        html = render_page("Post", {"static": True})
        options, _ = extract_directive(html)
        assert options.defined() == {"static": True}

    def test_accepts_camel_case_color_scheme(self):
        html = f'<script id="{DIRECTIVE_ID}" type="application/json">{{"colorScheme": "dark"}}</script>'
        options, _ = extract_directive(html)
        assert options.color_scheme == "dark"

    def test_first_marker_wins_and_all_are_stripped(self):
        html = (
            f'<script id="{DIRECTIVE_ID}" type="application/json">{{"width": 1}}</script>'
            f'<p>x</p>'
            f'<script id="{DIRECTIVE_ID}" type="application/json">{{"width": 2}}</script>'
        )
        options, out = extract_directive(html)
        assert options.width == 1
        assert out == "<p>x</p>"

    def test_entity_text_is_taken_literally(self):
        html = (
            f'<script id="{DIRECTIVE_ID}" type="application/json">'
            '{"title": "Fish &amp; Chips"}</script>'
        )
        options, _ = extract_directive(html)
        assert options.defined()["title"] == "Fish &amp; Chips"

    def test_malformed_json_raises(self):
        html = f'<script id="{DIRECTIVE_ID}" type="application/json">{{"width": </script>'
        with pytest.raises(DirectiveParseError, match="Invalid og:image options JSON"):
            extract_directive(html)

    def test_non_object_payload_raises(self):
        html = f'<script id="{DIRECTIVE_ID}" type="application/json">[1, 2]</script>'
        with pytest.raises(DirectiveParseError, match="JSON object"):
            extract_directive(html)

    def test_invalid_field_type_raises(self):
        html = f'<script id="{DIRECTIVE_ID}" type="application/json">{{"width": "wide"}}</script>'
        with pytest.raises(DirectiveParseError):
            extract_directive(html)


class TestEmbedDirective:
    def test_inserted_before_head_close(self):
        html = embed_directive("<html><head></head><body></body></html>",
                               ImageOptions(provider="browser"))
        assert html.index(DIRECTIVE_ID) < html.index("</head>")

    def test_appended_without_head(self):
        html = embed_directive("<p>hi</p>", ImageOptions(width=10))
        assert html.startswith("<p>hi</p><script")

    def test_replaces_existing_marker(self):
        html = embed_directive("<p>hi</p>", ImageOptions(width=10))
        html = embed_directive(html, ImageOptions(width=20))
        options, _ = extract_directive(html)
        assert options.width == 20
        assert html.count(DIRECTIVE_ID) == 1

    def test_script_close_in_payload_is_escaped(self):
        html = embed_directive("<p>hi</p>", ImageOptions(title="</script><b>"))
        options, out = extract_directive(html)
        assert options.defined()["title"] == "</script><b>"
        assert out == "<p>hi</p>"

    def test_strip_without_marker(self):
        assert strip_directive("<p>hi</p>") == "<p>hi</p>"

    @pytest.mark.parametrize("title", ['say &quot;hi&quot;', "Q&amp;A", "&lt;b&gt; &#39;x&#39;"])
    def test_entity_like_text_roundtrips(self, title):
        html = embed_directive("<p>hi</p>", ImageOptions(title=title))
        options, out = extract_directive(html)
        assert options.defined()["title"] == title
        assert out == "<p>hi</p>"
