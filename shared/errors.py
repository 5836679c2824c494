"""Exception hierarchy shared by the stores, the session adapter and the API layer.

Every error carries a user-facing ``message``. Permission and validation
errors are raised before any backend call is made; backend and identity
errors wrap the failure of the external collaborator.
"""


class ArchiveError(Exception):
    """Base class for all archive errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PermissionDeniedError(ArchiveError):
    """The caller's role does not allow the requested operation."""


class FormValidationError(ArchiveError):
    """A submitted form is incomplete or inconsistent."""


class CategoryInUseError(FormValidationError):
    """A category that still holds documents cannot be deleted."""


class NotFoundError(ArchiveError):
    """The referenced record is not present in the local cache."""


class BackendError(ArchiveError):
    """A backend gateway call failed."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ConsistencyGapError(BackendError):
    """The primary write succeeded but the follow-up count adjustment failed.

    The document stays written; the category count is off by one until it is
    recounted.
    """

    def __init__(self, message: str, document_id: str, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.document_id = document_id


# normalized identity provider error codes
IDENTITY_INVALID_CREDENTIALS = "invalid-credentials"
IDENTITY_NOT_FOUND = "not-found"
IDENTITY_TOO_MANY_ATTEMPTS = "too-many-attempts"
IDENTITY_INVALID_EMAIL = "invalid-email"
IDENTITY_EMAIL_IN_USE = "email-in-use"
IDENTITY_WEAK_PASSWORD = "weak-password"
IDENTITY_DISABLED = "disabled"
IDENTITY_UNKNOWN = "unknown"

IDENTITY_ERROR_MESSAGES: dict[str, str] = {
    IDENTITY_INVALID_CREDENTIALS: "Wrong email or password.",
    IDENTITY_NOT_FOUND: "No account exists for this email.",
    IDENTITY_TOO_MANY_ATTEMPTS: "Too many attempts. Please try again later.",
    IDENTITY_INVALID_EMAIL: "The email address is not valid.",
    IDENTITY_EMAIL_IN_USE: "This email is already in use.",
    IDENTITY_WEAK_PASSWORD: "The password is too weak.",
    IDENTITY_DISABLED: "Email/password accounts are disabled.",
}
GENERIC_IDENTITY_MESSAGE = "Authentication failed."


class IdentityError(ArchiveError):
    """An identity provider call failed with a normalized error code."""

    def __init__(self, code: str, detail: str | None = None):
        super().__init__(describe_identity_error(code))
        self.code = code
        self.detail = detail


def describe_identity_error(code: str | None) -> str:
    """Map an identity error code to a user-facing message, falling back to a generic one."""
    return IDENTITY_ERROR_MESSAGES.get(code or "", GENERIC_IDENTITY_MESSAGE)
