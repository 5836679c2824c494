"""Pydantic models for rendered document content.

``render()`` returns one of these variants, tagged by ``kind`` so the
consumer can pick the matching display without re-checking the type.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class TextRendering(BaseModel):
    """Plain text; line breaks are kept literally."""

    kind: Literal["text"] = "text"
    text: str


class CsvTable(BaseModel):
    """Table rows split from CSV content. ``empty`` is set for blank input."""

    kind: Literal["csv"] = "csv"
    headers: list[str] = []
    rows: list[list[str]] = []
    empty: bool = False


class MarkupFragment(BaseModel):
    """Escaped markup produced from the supported markdown subset."""

    kind: Literal["markdown"] = "markdown"
    markup: str


class HtmlEmbed(BaseModel):
    """Raw HTML for an isolated embedding context.

    ``sandbox`` lists the capabilities granted to the embedding frame; an
    empty list means scripts and same-origin access are both denied.
    ``source`` doubles as the raw-source view.
    """

    kind: Literal["html"] = "html"
    source: str
    sandbox: list[str] = []

    @property
    def sandbox_attribute(self) -> str:
        return " ".join(self.sandbox)


RenderedContent = Annotated[
    Union[TextRendering, CsvTable, MarkupFragment, HtmlEmbed],
    Field(discriminator="kind"),
]
