"""Per type rendering of document content into display safe representations."""

import html
import re

from shared.content.MarkdownRenderer import MarkdownRenderer
from shared.helper.HelperConfig import HelperConfig
from shared.models.content import CsvTable, HtmlEmbed, MarkupFragment, RenderedContent, TextRendering
from shared.models.document import DocumentType

PREVIEW_LENGTH = 150
CSV_PREVIEW_LINES = 3

_WHITESPACE = re.compile(r"\s+")
_SCRIPT_OR_STYLE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_TAG = re.compile(r"<[^>]+>")


class ContentRenderer:
    """Turns raw content plus its DocumentType into a tagged rendering or a list preview."""

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._markdown = MarkdownRenderer()
        self._html_sandbox: list[str] = helper_config.get_list_val("RENDER_HTML_SANDBOX", default=[])
        self._preview_length = int(helper_config.get_number_val("ARCHIVE_PREVIEW_LENGTH", default=PREVIEW_LENGTH))

    ##########################################
    ################ RENDER ##################
    ##########################################

    def render(self, content: str, document_type: DocumentType) -> RenderedContent:
        """Render content for display.

        Args:
            content (str): The raw document content.
            document_type (DocumentType): The stored or detected type.

        Returns:
            RenderedContent: One of TextRendering, CsvTable, MarkupFragment or HtmlEmbed.
        """
        content = content or ""
        document_type = DocumentType(document_type)
        if document_type == DocumentType.CSV:
            return self.render_csv(content)
        if document_type == DocumentType.MARKDOWN:
            return MarkupFragment(markup=self._markdown.render(content))
        if document_type == DocumentType.HTML:
            # raw passthrough, only ever shown inside the sandboxed frame
            return HtmlEmbed(source=content, sandbox=list(self._html_sandbox))
        return TextRendering(text=content)

    def render_csv(self, content: str) -> CsvTable:
        """Split CSV content into headers and rows.

        Cells are split on every comma; quoted cells with embedded commas are not supported.
        """
        lines = [line for line in content.strip().split("\n") if line.strip()]
        if not lines:
            return CsvTable(empty=True)
        headers = self._split_cells(lines[0])
        rows = [self._split_cells(line) for line in lines[1:]]
        return CsvTable(headers=headers, rows=rows)

    def _split_cells(self, line: str) -> list[str]:
        return [cell.strip() for cell in line.split(",")]

    ##########################################
    ################ PREVIEW #################
    ##########################################

    def render_preview(self, content: str, document_type: DocumentType, limit: int | None = None) -> str:
        """Build the bounded summary shown in list views.

        Args:
            content (str): The raw document content.
            document_type (DocumentType): The stored type.
            limit (int | None): Maximum characters before the "..." marker. Defaults to ARCHIVE_PREVIEW_LENGTH.

        Returns:
            str: The preview text.
        """
        content = content or ""
        limit = self._preview_length if limit is None else limit
        document_type = DocumentType(document_type)

        if document_type == DocumentType.CSV:
            return self._preview_csv(content, limit)
        if document_type == DocumentType.HTML:
            preview = self._collapse(html.unescape(_TAG.sub(" ", _SCRIPT_OR_STYLE.sub(" ", content))))
        elif document_type == DocumentType.MARKDOWN:
            preview = self._collapse(self._markdown.to_plain_text(content))
        else:
            preview = self._collapse(content)
        return self._truncate(preview, limit)

    def _preview_csv(self, content: str, limit: int) -> str:
        # only the shown lines are truncated, the remaining count is always kept
        lines = [line.strip() for line in content.strip().split("\n") if line.strip()]
        preview = self._truncate("\n".join(lines[:CSV_PREVIEW_LINES]), limit)
        remaining = len(lines) - CSV_PREVIEW_LINES
        if remaining > 0:
            preview += f"\n... (+{remaining} more lines)"
        return preview

    def _collapse(self, text: str) -> str:
        return _WHITESPACE.sub(" ", text).strip()

    def _truncate(self, text: str, limit: int) -> str:
        if len(text) <= limit:
            return text
        return text[:limit].rstrip() + "..."
