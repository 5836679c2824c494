"""Heuristic content type detection.

``classify`` is pure and total; it never raises and falls back to text.
``DocumentTypeSelector`` holds the advisory auto-detection state of an
edit form, where an explicit selection wins until the content changes.
"""

import re

from shared.models.document import DocumentType

AUTO_DETECT_MIN_LENGTH = 50

_MARKDOWN_MARKERS = ("# ", "**", "```", "- ", "* ")
_DOCTYPE_PATTERN = re.compile(r"<!doctype", re.IGNORECASE)


def _is_html(content: str) -> bool:
    if _DOCTYPE_PATTERN.search(content):
        return True
    if "<html" in content and "</html>" in content:
        return True
    return "<head>" in content or "<body>" in content


def _is_csv(content: str) -> bool:
    lines = [line for line in content.split("\n") if line.strip()]
    if len(lines) < 2:
        return False
    first_commas = lines[0].count(",")
    second_commas = lines[1].count(",")
    return first_commas > 0 and second_commas > 0 and abs(first_commas - second_commas) <= 1


def _is_markdown(content: str) -> bool:
    return any(marker in content for marker in _MARKDOWN_MARKERS)


def classify(content: str) -> DocumentType:
    """Detect the document type of raw content. First match wins: html, csv, markdown, text.

    Args:
        content (str): The raw document content.

    Returns:
        DocumentType: The detected type.
    """
    trimmed = (content or "").strip()
    if _is_html(trimmed):
        return DocumentType.HTML
    if _is_csv(trimmed):
        return DocumentType.CSV
    if _is_markdown(trimmed):
        return DocumentType.MARKDOWN
    return DocumentType.TEXT


class DocumentTypeSelector:
    """
    Auto-detection policy for a document form.

    Content changes re-classify only when the trimmed content is longer than
    ``min_length``; shorter content keeps whatever type is current. ``select``
    records an explicit choice that holds until the next content change.
    """

    def __init__(self, initial: DocumentType = DocumentType.TEXT, min_length: int = AUTO_DETECT_MIN_LENGTH):
        self._document_type = initial
        self._explicit = False
        self._min_length = min_length

    @property
    def document_type(self) -> DocumentType:
        return self._document_type

    @property
    def is_explicit(self) -> bool:
        return self._explicit

    def select(self, document_type: DocumentType) -> DocumentType:
        self._document_type = DocumentType(document_type)
        self._explicit = True
        return self._document_type

    def on_content_change(self, content: str) -> DocumentType:
        """Apply the auto-detection policy to edited content.

        Returns:
            DocumentType: The type in effect after the change.
        """
        self._explicit = False
        if len((content or "").strip()) > self._min_length:
            self._document_type = classify(content)
        return self._document_type
