"""Pydantic models for archived documents and the forms that write them.

Attributes are snake_case; aliases carry the field names stored in the
backend (camelCase). Records are dumped with ``by_alias=True``.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shared.errors import FormValidationError


class DocumentType(str, Enum):
    """Content type of a document. Decides how the content is rendered."""

    TEXT = "text"
    HTML = "html"
    CSV = "csv"
    MARKDOWN = "markdown"


def parse_tags(raw: Any) -> list[str]:
    """Parse user tag input into a clean tag list.

    Accepts a comma separated string or a list. Entries are trimmed, blank
    entries dropped. Order is preserved and duplicates are kept.

    Args:
        raw (Any): "a, b ,c" or ["a", " b ", ""] or None.

    Returns:
        list[str]: The parsed tags.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [str(tag).strip() for tag in raw if str(tag).strip()]


class Document(BaseModel):
    """
    A single archived document as held in the document store cache.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    content: str = ""
    category: str = ""
    author: str = ""
    author_uid: str = Field(default="", alias="authorUid")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    is_locked: bool = Field(default=False, alias="isLocked")
    password: str | None = None
    tags: list[str] = []
    document_type: DocumentType = Field(default=DocumentType.TEXT, alias="documentType")
    # reserved, always empty
    linked_documents: list[str] = Field(default_factory=list, alias="linkedDocuments")
    comments: list[dict] = []

    @field_validator("document_type", mode="before")
    @classmethod
    def _coerce_document_type(cls, value: Any) -> Any:
        # records written before the type existed, or with unknown types, render as text
        if isinstance(value, DocumentType) or value in {t.value for t in DocumentType}:
            return value
        return DocumentType.TEXT

    def is_unlocked_by(self, password: str | None) -> bool:
        """Check whether the given password opens this document. Unlocked documents are always open.

        The stored password is plaintext; this is a deterrent, not a security boundary.
        """
        if not self.is_locked:
            return True
        return password is not None and password == self.password


class DocumentForm(BaseModel):
    """
    Form data for creating a document.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str = ""
    content: str = ""
    category: str = ""
    document_type: DocumentType = Field(default=DocumentType.TEXT, alias="documentType")
    is_locked: bool = Field(default=False, alias="isLocked")
    password: str | None = None
    tags: list[str] = []

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, value: Any) -> list[str]:
        return parse_tags(value)

    def ensure_valid(self) -> None:
        """Check required fields before anything is submitted.

        Raises:
            FormValidationError: If title, content or category is missing, or a locked document has no password.
        """
        if not self.title.strip():
            raise FormValidationError("Please enter a title.")
        if not self.content.strip():
            raise FormValidationError("Please enter some content.")
        if not self.category.strip():
            raise FormValidationError("Please choose a category.")
        if self.is_locked and not self.password:
            raise FormValidationError("A password is required to lock a document.")

    def to_record(self, author: str, author_uid: str) -> dict:
        """Build the backend payload for a new document. Timestamps are assigned by the backend."""
        record = {
            "title": self.title.strip(),
            "content": self.content.strip(),
            "category": self.category,
            "author": author,
            "authorUid": author_uid,
            "documentType": self.document_type.value,
            "isLocked": self.is_locked,
            "tags": list(self.tags),
            "comments": [],
            "linkedDocuments": [],
        }
        # password only travels with locked documents
        if self.is_locked and self.password:
            record["password"] = self.password
        return record


class DocumentUpdateForm(BaseModel):
    """
    Partial form for updating a document. Only fields that were explicitly set are sent.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: str | None = None
    content: str | None = None
    category: str | None = None
    document_type: DocumentType | None = Field(default=None, alias="documentType")
    is_locked: bool | None = Field(default=None, alias="isLocked")
    password: str | None = None
    tags: list[str] | None = None

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, value: Any) -> list[str] | None:
        return None if value is None else parse_tags(value)

    def ensure_valid(self, current: Document | None = None) -> None:
        """Check the fields present on this update.

        Args:
            current (Document | None): The cached document being updated, used to tell whether a password is already stored.

        Raises:
            FormValidationError: If a present required field is blank, or locking leaves the document without a password.
        """
        fields = self.model_fields_set
        if "title" in fields and not (self.title or "").strip():
            raise FormValidationError("Please enter a title.")
        if "content" in fields and not (self.content or "").strip():
            raise FormValidationError("Please enter some content.")
        if "category" in fields and not (self.category or "").strip():
            raise FormValidationError("Please choose a category.")
        if self.is_locked and not self.password and not (current and current.password):
            raise FormValidationError("A password is required to lock a document.")

    def to_partial_record(self) -> dict:
        """Build the partial backend payload from the explicitly set fields only."""
        record = self.model_dump(include=self.model_fields_set, by_alias=True, mode="json")
        for key in ("title", "content"):
            if isinstance(record.get(key), str):
                record[key] = record[key].strip()
        # unlocking drops the stored password
        if record.get("isLocked") is False:
            record["password"] = None
        return record
