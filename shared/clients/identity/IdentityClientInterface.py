from abc import abstractmethod
from typing import Awaitable, Callable

from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.identity.models.ProviderUser import ProviderUser

AuthStateListener = Callable[[ProviderUser | None], Awaitable[None]]


class IdentityClientInterface(ClientInterface):
    """
    Identity provider. Engines implement the credential calls; this base keeps
    the signed-in provider user and notifies auth state listeners on every
    transition.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._current_user: ProviderUser | None = None
        self._listeners: list[AuthStateListener] = []

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client.
        """
        return "identity"

    def get_current_user(self) -> ProviderUser | None:
        return self._current_user

    def get_id_token(self) -> str | None:
        """
        Returns the id token of the signed-in user, used by the backend client as bearer token.
        """
        return self._current_user.id_token if self._current_user else None

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {}

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def _do_sign_in(self, email: str, password: str) -> ProviderUser:
        """
        Verifies credentials at the provider.

        Raises:
            IdentityError: With code invalid-credentials, not-found, too-many-attempts or invalid-email.
        """
        pass

    @abstractmethod
    async def _do_sign_up(self, email: str, password: str) -> ProviderUser:
        """
        Creates an account at the provider.

        Raises:
            IdentityError: With code email-in-use, weak-password, invalid-email or disabled.
        """
        pass

    async def _do_sign_out(self) -> None:
        """
        Engine hook for provider-side sign out. Token based engines only drop local state.
        """
        return None

    async def do_sign_in(self, email: str, password: str) -> ProviderUser:
        user = await self._do_sign_in(email, password)
        self._current_user = user
        self.logging.info("Signed in provider user %s", user.uid)
        await self._notify(user)
        return user

    async def do_sign_up(self, email: str, password: str) -> ProviderUser:
        user = await self._do_sign_up(email, password)
        self._current_user = user
        self.logging.info("Created provider account %s", user.uid)
        await self._notify(user)
        return user

    async def do_sign_out(self) -> None:
        await self._do_sign_out()
        self._current_user = None
        await self._notify(None)

    ##########################################
    ############## LISTENERS #################
    ##########################################

    def on_auth_state_changed(self, listener: AuthStateListener) -> Callable[[], None]:
        """
        Registers a listener awaited with the provider user (or None) on every sign in, sign up and sign out.

        Returns:
            Callable[[], None]: Removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _notify(self, user: ProviderUser | None) -> None:
        for listener in list(self._listeners):
            try:
                await listener(user)
            except Exception as e:
                # a failing listener must not fail the credential call itself
                self.logging.error("Auth state listener failed: %s", e)
