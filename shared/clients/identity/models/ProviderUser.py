"""Provider-native user as returned by an identity client, independent of the backend."""

from pydantic import BaseModel


class ProviderUser(BaseModel):
    """
    Represents the account signed in at the identity provider. The archive's
    own profile (name, role) lives in the ``users`` collection under ``uid``.
    """
    uid: str
    email: str
    id_token: str | None = None
    refresh_token: str | None = None
