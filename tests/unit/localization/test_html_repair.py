"""Unit tests for HTML balance repair."""

import pytest
from jsonlocalizer.core.localization.html_repair import looks_like_markup, repair_html


class TestLooksLikeMarkup:
    """Test markup detection."""

    def test_markup_detected(self):
        assert looks_like_markup("<b>x</b>")

    def test_needs_both_brackets(self):
        """A lone '<' or '>' is not markup."""
        assert not looks_like_markup("a < b")
        assert not looks_like_markup("a > b")
        assert not looks_like_markup("plain text")


class TestRepairHtml:
    """Test repair_html."""

    def test_plain_text_unchanged(self):
        """Strings without markup are returned untouched."""
        assert repair_html("Hello & goodbye") == "Hello & goodbye"

    def test_empty_string(self):
        assert repair_html("") == ""

    def test_balanced_markup_unchanged(self, sample_html):
        """Canonical balanced HTML survives repair."""
        assert repair_html(sample_html) == sample_html

    def test_leading_text_and_tail(self):
        """Text before and after elements is kept."""
        html = 'Click <a href="https://example.com">here</a> now'
        assert repair_html(html) == html

    def test_unclosed_tag_is_closed(self):
        """An unclosed inline tag gets its closing tag."""
        assert repair_html("<p>Hello <b>World</p>") == "<p>Hello <b>World</b></p>"

    def test_edge_whitespace_preserved(self):
        """Leading and trailing whitespace survive the parser."""
        assert repair_html("  <b>Hi</b>  ") == "  <b>Hi</b>  "

    @pytest.mark.parametrize("html", [
        "Hello&nbsp;<b>you</b>",
        "<p>&copy; 2024 Example</p>",
        "<a href='#'>Top</a>",
        "Line<br/>break",
    ])
    def test_balanced_markup_kept_byte_for_byte(self, html):
        """Entities, quoting and void-tag spelling of balanced input are left alone."""
        assert repair_html(html) == html

    def test_entities_kept_when_nothing_to_repair(self):
        assert repair_html("<b>Fish &amp; chips</b>") == "<b>Fish &amp; chips</b>"

    def test_stray_close_dropped(self):
        """Unbalanced input is still rebuilt by the parser."""
        repaired = repair_html("Text</b> here")
        assert "</b>" not in repaired
        assert "here" in repaired

    @pytest.mark.parametrize("html", [
        "<p>Hello <b>World</p>",
        "<div><span>Hi</div>",
        "<ul><li>One<li>Two</ul>",
        "Text</b> with stray close",
    ])
    def test_idempotent(self, html):
        """Repairing twice gives the same result as repairing once."""
        once = repair_html(html)
        assert repair_html(once) == once

    @pytest.mark.parametrize("html", ["<<>>", "a < b > c", "<>", "</>", "<!-- note -->"])
    def test_never_raises(self, html):
        """Odd input never raises."""
        assert isinstance(repair_html(html), str)
