from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from shared.models.document import Document, DocumentType
from shared.models.user import AppUser


class SessionResponse(BaseModel):
    authenticated: bool
    is_admin: bool = Field(default=False, serialization_alias="isAdmin")
    user: AppUser | None = None


class DocumentResponse(BaseModel):
    """
    A document as sent to clients. The lock password never leaves the server;
    locked documents carry no content or preview unless opened with their password.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    content: str
    preview: str
    category: str
    author: str
    author_uid: str = Field(alias="authorUid")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    is_locked: bool = Field(alias="isLocked")
    tags: list[str]
    document_type: DocumentType = Field(alias="documentType")

    @classmethod
    def from_document(cls, document: Document, preview: str, unlocked: bool = False) -> "DocumentResponse":
        hidden = document.is_locked and not unlocked
        return cls(
            id=document.id,
            title=document.title,
            content="" if hidden else document.content,
            preview="" if hidden else preview,
            category=document.category,
            author=document.author,
            author_uid=document.author_uid,
            created_at=document.created_at,
            updated_at=document.updated_at,
            is_locked=document.is_locked,
            tags=document.tags,
            document_type=document.document_type,
        )


class CreatedResponse(BaseModel):
    id: str


class StatusResponse(BaseModel):
    status: str
    id: str | None = None


class ClassifyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_type: DocumentType = Field(alias="documentType")


class PreviewResponse(BaseModel):
    preview: str
