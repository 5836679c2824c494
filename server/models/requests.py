from pydantic import BaseModel, ConfigDict, Field

from shared.models.document import DocumentType


class ContentRequest(BaseModel):
    content: str


class RenderRequest(BaseModel):
    """Content to render. Without a type the content is classified first."""
    model_config = ConfigDict(populate_by_name=True)

    content: str
    document_type: DocumentType | None = Field(default=None, alias="documentType")


class PreviewRequest(RenderRequest):
    limit: int | None = Field(default=None, gt=0)
