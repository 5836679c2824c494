from abc import ABC, abstractmethod

from shared.clients.backend.BackendClientInterface import BackendClientInterface, Unsubscribe
from shared.clients.backend.models.Query import QuerySpec
from shared.errors import BackendError, PermissionDeniedError
from shared.helper.HelperConfig import HelperConfig
from services.archive.SessionAdapter import SessionAdapter


class ArchiveStore(ABC):
    """
    Common state of the category and document stores: a cache bound to one
    live subscription, a ``loading`` flag and the last backend ``error``.

    The cache is only ever replaced by query results and subscription
    snapshots; mutations never touch it directly.
    """

    def __init__(self, helper_config: HelperConfig, backend_client: BackendClientInterface, session: SessionAdapter):
        self.logging = helper_config.get_logger()
        self._backend = backend_client
        self._session = session
        self.loading = False
        self.error: str | None = None
        self._unsubscribe: Unsubscribe | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    @abstractmethod
    def _get_collection(self) -> str:
        pass

    @abstractmethod
    def _get_query(self) -> QuerySpec:
        """
        Returns the standing query used by load() and subscribe().
        """
        pass

    @abstractmethod
    def _replace_cache(self, records: list[dict]) -> None:
        pass

    def is_subscribed(self) -> bool:
        return self._unsubscribe is not None

    ##########################################
    ############ SUBSCRIPTIONS ###############
    ##########################################

    def _start_subscription(self) -> Unsubscribe:
        if self._unsubscribe is not None:
            return self._unsubscribe
        self.loading = True
        backend_unsubscribe = self._backend.subscribe(
            self._get_collection(),
            self._get_query(),
            self._on_snapshot,
            self._on_subscription_error,
        )

        def unsubscribe() -> None:
            backend_unsubscribe()
            if self._unsubscribe is unsubscribe:
                self._unsubscribe = None

        self._unsubscribe = unsubscribe
        return unsubscribe

    def _stop_subscription(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()

    def _on_snapshot(self, records: list[dict]) -> None:
        self._replace_cache(records)
        self.loading = False
        self.error = None

    def _on_subscription_error(self, error: Exception) -> None:
        self.loading = False
        self._record_error(f"Live updates for {self._get_collection()} failed.", error)

    async def close(self) -> None:
        """Drop the live subscription."""
        self._stop_subscription()

    ##########################################
    ################ LOADING #################
    ##########################################

    async def _load_records(self) -> None:
        self.loading = True
        try:
            records = await self._backend.do_query(self._get_collection(), self._get_query())
            self._replace_cache(records)
            self.error = None
        except Exception as e:
            # the previous cache stays in place
            self._record_error(f"Could not load {self._get_collection()}.", e)
        finally:
            self.loading = False

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _require_admin(self, action: str) -> None:
        """
        Raises:
            PermissionDeniedError: If no user is signed in or the user is not an admin.
        """
        user = self._session.user
        if user is None or not user.is_admin:
            self.logging.warning("Rejected attempt to %s by %s", action, user.uid if user else "anonymous user")
            raise PermissionDeniedError(f"Only administrators may {action}.")

    def _record_error(self, message: str, error: Exception) -> BackendError:
        """Log a backend failure, keep it in ``error`` and return it wrapped for raising."""
        if isinstance(error, BackendError):
            # already recorded by a collaborating store
            self.error = error.message
            return error
        self.logging.error("%s %s", message, error)
        self.error = message
        return BackendError(message, cause=error)
