import pytest

from shared.content.ContentClassifier import DocumentTypeSelector, classify
from shared.models.document import DocumentType


@pytest.mark.parametrize(
    "content",
    [
        "<!DOCTYPE html><p>hi</p>",
        "<!doctype html>",
        "<html><p>x</p></html>",
        "<head><title>t</title></head>",
        "text before <body>content</body>",
    ],
)
def test_html_is_detected(content):
    assert classify(content) == DocumentType.HTML


def test_doctype_wins_over_csv_and_markdown():
    content = "<!DOCTYPE html>\na,b\n1,2\n# heading"
    assert classify(content) == DocumentType.HTML


def test_html_needs_both_html_tags():
    assert classify("<html> without closing tag") == DocumentType.TEXT


@pytest.mark.parametrize("first,second", [("a,b", "1,2"), ("name,age", "bob,4"), (" x , y ", "1 , 2")])
def test_two_lines_with_one_comma_each_are_csv(first, second):
    assert classify(f"{first}\n{second}") == DocumentType.CSV


def test_csv_tolerates_one_comma_difference_and_blank_lines():
    assert classify("a,b,c\n\n1,2\n") == DocumentType.CSV


def test_csv_rejects_larger_comma_difference():
    assert classify("a,b,c,d\n1,2") == DocumentType.TEXT


def test_csv_needs_a_comma_in_the_second_line():
    assert classify("a,b\nplain line") == DocumentType.TEXT


def test_single_line_with_commas_is_not_csv():
    assert classify("one, two, three") == DocumentType.TEXT


@pytest.mark.parametrize("content", ["# Title", "## Sub", "some **bold** text", "```\ncode\n```", "- item", "* item"])
def test_markdown_markers(content):
    assert classify(content) == DocumentType.MARKDOWN


def test_plain_text_fallback():
    assert classify("Just a sentence.") == DocumentType.TEXT
    assert classify("") == DocumentType.TEXT
    assert classify("   \n  ") == DocumentType.TEXT


def test_surrounding_whitespace_is_ignored():
    assert classify("\n\n  a,b\n1,2  \n\n") == DocumentType.CSV


class TestDocumentTypeSelector:
    LONG_MARKDOWN = "# Meeting notes\n\n- first point of discussion\n- second point of discussion"

    def test_defaults_to_text(self):
        assert DocumentTypeSelector().document_type == DocumentType.TEXT

    def test_long_content_is_classified(self):
        selector = DocumentTypeSelector()
        assert selector.on_content_change(self.LONG_MARKDOWN) == DocumentType.MARKDOWN

    def test_short_content_never_overrides_explicit_selection(self):
        selector = DocumentTypeSelector()
        selector.select(DocumentType.HTML)
        for content in ["a,b\n1,2", "# x", "- y", "x" * 50]:
            assert selector.on_content_change(content) == DocumentType.HTML

    def test_short_content_keeps_the_default(self):
        selector = DocumentTypeSelector()
        assert selector.on_content_change("# short") == DocumentType.TEXT

    def test_explicit_selection_holds_until_content_changes(self):
        selector = DocumentTypeSelector()
        selector.on_content_change(self.LONG_MARKDOWN)
        selector.select(DocumentType.TEXT)
        assert selector.document_type == DocumentType.TEXT
        assert selector.is_explicit

        # the next long edit re-classifies and clears the explicit flag
        assert selector.on_content_change(self.LONG_MARKDOWN + "\n- third") == DocumentType.MARKDOWN
        assert not selector.is_explicit

    def test_threshold_is_configurable(self):
        selector = DocumentTypeSelector(min_length=5)
        assert selector.on_content_change("a,b\n1,2") == DocumentType.CSV
