from abc import abstractmethod
from typing import Callable

from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.backend.models.Query import QuerySpec

COLLECTION_USERS = "users"
COLLECTION_DOCUMENTS = "documents"
COLLECTION_CATEGORIES = "categories"
# reserved, not used by the archive yet
COLLECTION_COMMENTS = "comments"

SnapshotCallback = Callable[[list[dict]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]
TokenProvider = Callable[[], str | None]


class BackendClientInterface(ClientInterface):
    """
    Document database gateway. Records travel as plain dicts with the record id
    under ``"id"`` and the stored field names (camelCase) as keys.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._token_provider: TokenProvider | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client.
        """
        return "backend"

    ################ AUTH ##################
    def set_token_provider(self, token_provider: TokenProvider | None) -> None:
        """
        Sets the callable returning the current user's id token. Engines that enforce
        security rules send it as bearer token.
        """
        self._token_provider = token_provider

    def _get_auth_header(self) -> dict:
        token = self._token_provider() if self._token_provider else None
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_get(self, collection: str, record_id: str) -> dict | None:
        """
        Fetches a single record.

        Args:
            collection (str): The collection name, e.g. "users".
            record_id (str): The record id.

        Returns:
            dict | None: The record including its "id", or None if it does not exist.
        """
        pass

    @abstractmethod
    async def do_query(self, collection: str, query: QuerySpec | None = None) -> list[dict]:
        """
        Runs a query against a collection.

        Args:
            collection (str): The collection name.
            query (QuerySpec | None): Filters, ordering and limit. None returns all records in backend order.

        Returns:
            list[dict]: The matching records including their "id".
        """
        pass

    @abstractmethod
    async def do_create(self, collection: str, data: dict, doc_id: str | None = None) -> str:
        """
        Creates a record. The backend stamps "createdAt" and "updatedAt".

        Args:
            collection (str): The collection name.
            data (dict): The record fields.
            doc_id (str | None): Explicit id (set semantics, overwrites an existing record). None lets the backend assign one.

        Returns:
            str: The id of the written record.
        """
        pass

    @abstractmethod
    async def do_update(self, collection: str, record_id: str, partial: dict) -> None:
        """
        Updates only the given fields of an existing record and stamps "updatedAt".

        Raises:
            Exception: If the record does not exist or the write fails.
        """
        pass

    @abstractmethod
    async def do_delete(self, collection: str, record_id: str) -> None:
        """
        Deletes a record. Deleting a missing record is not an error.
        """
        pass

    @abstractmethod
    def subscribe(self, collection: str, query: QuerySpec | None, callback: SnapshotCallback, on_error: ErrorCallback | None = None) -> Unsubscribe:
        """
        Starts a live subscription. ``callback`` receives the full current result set
        whenever it changes (and once initially). Must be called from a running event loop.

        Args:
            collection (str): The collection name.
            query (QuerySpec | None): The standing query.
            callback (SnapshotCallback): Receives each full snapshot.
            on_error (ErrorCallback | None): Receives delivery failures; the subscription stays active.

        Returns:
            Unsubscribe: Callable stopping the subscription. Calling it twice is harmless.
        """
        pass
