"""Session adapter.

Wraps the identity provider, resolves provider users into application users
(profile lookup with auto-provisioning) and pushes every resolved user, or
None after sign out, to its listeners.
"""

from typing import Awaitable, Callable

from shared.clients.backend.BackendClientInterface import BackendClientInterface, COLLECTION_USERS
from shared.clients.identity.IdentityClientInterface import IdentityClientInterface
from shared.clients.identity.models.ProviderUser import ProviderUser
from shared.errors import ArchiveError, BackendError, IdentityError, PermissionDeniedError, describe_identity_error
from shared.helper.HelperConfig import HelperConfig
from shared.models.user import AppUser, ProfileUpdateForm, SignupForm, UserRole

SessionListener = Callable[[AppUser | None], Awaitable[None]]

DEFAULT_ADMIN_KEY = "164645"
DEFAULT_ADMIN_EMAILS = ["admin@test.com"]


class SessionAdapter:
    """Holds the signed-in application user and keeps it in line with the identity provider."""

    def __init__(
        self,
        helper_config: HelperConfig,
        identity_client: IdentityClientInterface,
        backend_client: BackendClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._identity = identity_client
        self._backend = backend_client
        self._admin_key = helper_config.get_string_val("ARCHIVE_ADMIN_KEY", default=DEFAULT_ADMIN_KEY)
        self._admin_emails = [
            email.lower() for email in helper_config.get_list_val("ARCHIVE_ADMIN_EMAILS", default=DEFAULT_ADMIN_EMAILS)
        ]

        self.user: AppUser | None = None
        self.loading = True
        self._listeners: list[SessionListener] = []
        self._unsubscribe_provider: Callable[[], None] | None = None
        # set while sign up runs so the provider event does not provision a viewer profile first
        self._suppress_provider_events = False

    ##########################################
    ################ GETTER ##################
    ##########################################

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    ##########################################
    ############### LIFECYCLE ################
    ##########################################

    async def start(self) -> None:
        """Register with the identity provider and resolve the current provider state."""
        if self._unsubscribe_provider is None:
            self._unsubscribe_provider = self._identity.on_auth_state_changed(self._handle_provider_change)
        await self._handle_provider_change(self._identity.get_current_user())
        self.loading = False

    async def close(self) -> None:
        if self._unsubscribe_provider is not None:
            self._unsubscribe_provider()
            self._unsubscribe_provider = None
        self._listeners.clear()

    def on_change(self, listener: SessionListener) -> Callable[[], None]:
        """
        Registers a listener awaited with the resolved user (or None) on every change.

        Returns:
            Callable[[], None]: Removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    ##########################################
    ############### ACTIONS ##################
    ##########################################

    async def sign_in(self, email: str, password: str) -> AppUser:
        """Sign in at the provider and resolve the application user.

        Raises:
            IdentityError: invalid-credentials, not-found, too-many-attempts or invalid-email.
            BackendError: If the profile could not be loaded or provisioned.
        """
        provider_user = await self._identity.do_sign_in(email.strip(), password)
        # normally resolved by the provider event already
        if self.user is None or self.user.uid != provider_user.uid:
            await self._set_user(await self._resolve_app_user(provider_user))
        return self.user

    async def sign_up(self, form: SignupForm) -> AppUser:
        """Create the provider account and the profile record.

        The role is admin only when the form's admin key matches ARCHIVE_ADMIN_KEY.
        If the profile write fails the provider account remains without a profile.

        Raises:
            FormValidationError: If the form is incomplete, before any provider call.
            IdentityError: email-in-use, weak-password, invalid-email or disabled.
            BackendError: If the profile could not be written.
        """
        form.ensure_valid()
        role = UserRole.ADMIN if form.admin_key == self._admin_key else UserRole.VIEWER

        self._suppress_provider_events = True
        try:
            provider_user = await self._identity.do_sign_up(form.email.strip(), form.password)
        finally:
            self._suppress_provider_events = False

        profile = {"name": form.name.strip(), "email": provider_user.email, "role": role.value}
        try:
            await self._backend.do_create(COLLECTION_USERS, profile, doc_id=provider_user.uid)
        except Exception as e:
            self.logging.error("Account %s was created but its profile could not be written: %s", provider_user.uid, e)
            raise BackendError("Your account was created but the profile could not be saved.", cause=e)

        self.logging.info("Signed up %s as %s", provider_user.uid, role.value)
        await self._set_user(await self._resolve_app_user(provider_user))
        return self.user

    async def sign_out(self) -> None:
        await self._identity.do_sign_out()
        if self.user is not None:
            await self._set_user(None)

    async def update_profile(self, form: ProfileUpdateForm) -> AppUser:
        """Persist name and profile image of the signed-in user. The role is never written.

        Raises:
            PermissionDeniedError: If nobody is signed in.
            FormValidationError: If the name is blank.
            BackendError: If the write fails.
        """
        if self.user is None:
            raise PermissionDeniedError("Please sign in to update your profile.")
        form.ensure_valid()
        partial = form.to_partial_record()
        if not partial:
            return self.user

        try:
            await self._backend.do_update(COLLECTION_USERS, self.user.uid, partial)
        except Exception as e:
            self.logging.error("Updating profile of %s failed: %s", self.user.uid, e)
            raise BackendError("Could not update your profile.", cause=e)

        updates = {"name": partial.get("name", self.user.name), "profile_image": partial.get("profileImage", self.user.profile_image)}
        await self._set_user(self.user.model_copy(update=updates))
        return self.user

    def describe_error(self, error: Exception | str | None) -> str:
        """Map an identity error (or its code) to a user-facing message, with a generic fallback."""
        if isinstance(error, IdentityError):
            return error.message
        if isinstance(error, str) or error is None:
            return describe_identity_error(error)
        if isinstance(error, ArchiveError):
            return error.message
        return describe_identity_error(None)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    async def _handle_provider_change(self, provider_user: ProviderUser | None) -> None:
        if self._suppress_provider_events:
            return
        if provider_user is None:
            if self.user is not None:
                await self._set_user(None)
            return
        if self.user is not None and self.user.uid == provider_user.uid:
            return

        self.loading = True
        try:
            await self._set_user(await self._resolve_app_user(provider_user))
        finally:
            self.loading = False

    async def _resolve_app_user(self, provider_user: ProviderUser) -> AppUser:
        """Load the profile of a provider user, provisioning it on first sign in."""
        try:
            record = await self._backend.do_get(COLLECTION_USERS, provider_user.uid)
            if record is None:
                record = await self._provision_profile(provider_user)
        except Exception as e:
            self.logging.error("Resolving profile of %s failed: %s", provider_user.uid, e)
            raise BackendError("Could not load your profile.", cause=e)
        return AppUser.model_validate({**record, "uid": provider_user.uid})

    async def _provision_profile(self, provider_user: ProviderUser) -> dict:
        email = provider_user.email
        role = UserRole.ADMIN if email.lower() in self._admin_emails else UserRole.VIEWER
        profile = {"name": email.split("@")[0], "email": email, "role": role.value}
        await self._backend.do_create(COLLECTION_USERS, profile, doc_id=provider_user.uid)
        self.logging.info("Provisioned %s profile for %s", role.value, provider_user.uid)
        return await self._backend.do_get(COLLECTION_USERS, provider_user.uid) or profile

    async def _set_user(self, user: AppUser | None) -> None:
        self.user = user
        for listener in list(self._listeners):
            try:
                await listener(user)
            except Exception as e:
                self.logging.error("Session listener failed: %s", e)
