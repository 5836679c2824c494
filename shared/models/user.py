"""Pydantic models for application users and the session forms."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from shared.errors import FormValidationError

MIN_PASSWORD_LENGTH = 6


class UserRole(str, Enum):
    ADMIN = "admin"
    VIEWER = "viewer"


class UserProfile(BaseModel):
    """
    The profile record stored in the ``users`` collection, keyed by the provider uid.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str
    email: str
    role: UserRole = UserRole.VIEWER
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    profile_image: str | None = Field(default=None, alias="profileImage")


class AppUser(UserProfile):
    """
    The resolved application user: provider identity plus profile.
    """
    uid: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class SignInForm(BaseModel):
    email: str
    password: str


class SignupForm(BaseModel):
    """
    Form data for creating an account. ``admin_key`` decides the role.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = Field(default="", alias="confirmPassword")
    admin_key: str = Field(default="", alias="adminKey")

    def ensure_valid(self) -> None:
        """
        Raises:
            FormValidationError: If name or email is blank, the password is too short or the confirmation differs.
        """
        if not self.name.strip():
            raise FormValidationError("Please enter your name.")
        if not self.email.strip():
            raise FormValidationError("Please enter your email.")
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise FormValidationError(f"The password must be at least {MIN_PASSWORD_LENGTH} characters long.")
        if self.password != self.confirm_password:
            raise FormValidationError("The passwords do not match.")


class ProfileUpdateForm(BaseModel):
    """
    Profile fields a user may change on their own record. Role and email are not part of it.
    """
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    profile_image: str | None = Field(default=None, alias="profileImage")

    def ensure_valid(self) -> None:
        if "name" in self.model_fields_set and not (self.name or "").strip():
            raise FormValidationError("Please enter your name.")

    def to_partial_record(self) -> dict:
        record = self.model_dump(include=self.model_fields_set, by_alias=True)
        if isinstance(record.get("name"), str):
            record["name"] = record["name"].strip()
        return record
