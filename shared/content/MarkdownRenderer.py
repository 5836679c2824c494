"""Markdown subset renderer.

Supported: fenced code blocks, headings (levels 1-3), bullet items ("- " and
"* "), inline code, links, bold and italic. Emphasis does not nest and there
are no tables. All literal text is HTML-escaped.
"""

import html
import re
from urllib.parse import urlsplit

_FENCE = "```"
_HEADING_PATTERN = re.compile(r"^(#{1,3}) (.*)$")
_BULLET_PATTERN = re.compile(r"^[-*] (.*)$")
_LINK_PATTERN = re.compile(r"\[([^\]]*)\]\(([^)\s]*)\)")
_SAFE_LINK_SCHEMES = {"", "http", "https", "mailto"}

# preview stripping
_STRIP_HEADING = re.compile(r"^\s*#{1,6}\s+", re.MULTILINE)
_STRIP_BULLET = re.compile(r"^\s*[-*]\s+", re.MULTILINE)
_STRIP_EMPHASIS = re.compile(r"\*\*|\*|`")


class MarkdownRenderer:
    """
    Single pass scanner. Each line is classified once (fence, heading, bullet
    or paragraph line); inside a line, inline constructs are matched at the
    scan position in fixed order: inline code, link, bold, italic. Anything
    that does not open a construct is emitted as escaped literal text.
    """

    ##########################################
    ################ RENDER ##################
    ##########################################

    def render(self, content: str) -> str:
        """Render markdown content into escaped markup.

        Args:
            content (str): Raw markdown.

        Returns:
            str: The markup, lines joined with "<br>".
        """
        lines = (content or "").replace("\r\n", "\n").split("\n")
        blocks: list[str] = []
        index = 0
        while index < len(lines):
            line = lines[index]
            if line.strip().startswith(_FENCE):
                block, index = self._render_fence(lines, index)
                blocks.append(block)
                continue
            blocks.append(self._render_line(line))
            index += 1
        return "<br>".join(blocks)

    def _render_fence(self, lines: list[str], start: int) -> tuple[str, int]:
        """Consume a fenced code block starting at ``start``. An unterminated fence runs to the end."""
        opening = lines[start].strip()
        # single line fence: ```code```
        if len(opening) > 2 * len(_FENCE) and opening.endswith(_FENCE):
            return self._code_block(opening[len(_FENCE):-len(_FENCE)]), start + 1

        body: list[str] = []
        # the info string after the opening fence (language) is not rendered
        index = start + 1
        while index < len(lines):
            if lines[index].strip().startswith(_FENCE):
                return self._code_block("\n".join(body)), index + 1
            body.append(lines[index])
            index += 1
        return self._code_block("\n".join(body)), index

    def _code_block(self, code: str) -> str:
        return f"<pre><code>{html.escape(code)}</code></pre>"

    def _render_line(self, line: str) -> str:
        heading = _HEADING_PATTERN.match(line)
        if heading:
            level = len(heading.group(1))
            return f"<h{level}>{self.render_inline(heading.group(2))}</h{level}>"
        bullet = _BULLET_PATTERN.match(line)
        if bullet:
            return f"<li>{self.render_inline(bullet.group(1))}</li>"
        return self.render_inline(line)

    def render_inline(self, text: str) -> str:
        """Render the inline constructs of a single line."""
        out: list[str] = []
        literal: list[str] = []
        position = 0

        def flush() -> None:
            if literal:
                out.append(html.escape("".join(literal)))
                literal.clear()

        while position < len(text):
            token = self._match_inline(text, position)
            if token is None:
                literal.append(text[position])
                position += 1
                continue
            markup, position = token
            flush()
            out.append(markup)
        flush()
        return "".join(out)

    def _match_inline(self, text: str, position: int) -> tuple[str, int] | None:
        char = text[position]
        if char == "`":
            end = text.find("`", position + 1)
            if end > position + 1:
                return f"<code>{html.escape(text[position + 1:end])}</code>", end + 1
            return None
        if char == "[":
            link = _LINK_PATTERN.match(text, position)
            if link:
                return self._render_link(link.group(1), link.group(2)), link.end()
            return None
        if text.startswith("**", position):
            return self._match_emphasis(text, position, "**", "strong")
        if char == "*":
            return self._match_emphasis(text, position, "*", "em")
        return None

    def _match_emphasis(self, text: str, position: int, marker: str, tag: str) -> tuple[str, int] | None:
        start = position + len(marker)
        end = text.find(marker, start)
        if end <= start:
            return None
        inner = text[start:end]
        # "a * b * c" is not emphasis
        if inner[0].isspace() or inner[-1].isspace():
            return None
        return f"<{tag}>{html.escape(inner)}</{tag}>", end + len(marker)

    def _render_link(self, label: str, target: str) -> str:
        if urlsplit(target).scheme.lower() not in _SAFE_LINK_SCHEMES:
            return html.escape(label)
        return f'<a href="{html.escape(target, quote=True)}" target="_blank" rel="noopener noreferrer">{html.escape(label)}</a>'

    ##########################################
    ################ PLAIN ###################
    ##########################################

    def to_plain_text(self, content: str) -> str:
        """Strip markdown syntax, keeping link texts. Whitespace is not collapsed here."""
        text = (content or "").replace(_FENCE, " ")
        text = _STRIP_HEADING.sub("", text)
        text = _STRIP_BULLET.sub("", text)
        text = _LINK_PATTERN.sub(lambda match: match.group(1), text)
        return _STRIP_EMPHASIS.sub("", text)
