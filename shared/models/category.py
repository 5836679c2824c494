"""Pydantic models for document categories."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import FormValidationError

# display style tokens a category may use
CATEGORY_COLORS: list[str] = [
    "bg-blue-100 text-blue-800",
    "bg-green-100 text-green-800",
    "bg-purple-100 text-purple-800",
    "bg-red-100 text-red-800",
    "bg-yellow-100 text-yellow-800",
    "bg-indigo-100 text-indigo-800",
    "bg-pink-100 text-pink-800",
    "bg-gray-100 text-gray-800",
]

DEFAULT_CATEGORY_NAMES: list[str] = [
    "Business",
    "Strategic Planning",
    "Detailed Planning",
    "Design",
    "Frontend Development",
    "Backend Development",
    "QA",
    "Operations",
    "Personal",
]

SYSTEM_CREATOR = "system"


class Category(BaseModel):
    """
    A single category as held in the category store cache. ``count`` is the
    denormalized number of documents filed under ``name``.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    color: str = CATEGORY_COLORS[0]
    count: int = 0
    created_by: str = Field(default="", alias="createdBy")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class CategoryForm(BaseModel):
    """
    Form data for creating a category.
    """
    name: str = ""
    color: str = CATEGORY_COLORS[0]

    def ensure_valid(self) -> None:
        """
        Raises:
            FormValidationError: If the name is blank or the color is not one of CATEGORY_COLORS.
        """
        if not self.name.strip():
            raise FormValidationError("Please enter a category name.")
        if self.color not in CATEGORY_COLORS:
            raise FormValidationError(f"Unknown category color '{self.color}'.")

    def to_record(self, created_by: str) -> dict:
        return {
            "name": self.name.strip(),
            "color": self.color,
            "count": 0,
            "createdBy": created_by,
        }


class CategoryUpdateForm(BaseModel):
    """
    Partial form for updating a category. Only explicitly set fields are sent.
    """
    name: str | None = None
    color: str | None = None

    def ensure_valid(self) -> None:
        if "name" in self.model_fields_set and not (self.name or "").strip():
            raise FormValidationError("Please enter a category name.")
        if "color" in self.model_fields_set and self.color not in CATEGORY_COLORS:
            raise FormValidationError(f"Unknown category color '{self.color}'.")

    def to_partial_record(self) -> dict:
        record = self.model_dump(include=self.model_fields_set)
        if isinstance(record.get("name"), str):
            record["name"] = record["name"].strip()
        return record


def default_categories() -> list[CategoryForm]:
    """The categories seeded into an empty archive, colors assigned in palette order."""
    return [
        CategoryForm(name=name, color=CATEGORY_COLORS[index % len(CATEGORY_COLORS)])
        for index, name in enumerate(DEFAULT_CATEGORY_NAMES)
    ]
