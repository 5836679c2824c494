from typing import Callable

from pydantic import ValidationError

from shared.clients.backend.BackendClientInterface import BackendClientInterface, COLLECTION_DOCUMENTS, Unsubscribe
from shared.clients.backend.models.Query import QuerySpec
from shared.errors import BackendError, ConsistencyGapError, FormValidationError, NotFoundError, PermissionDeniedError
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, DocumentForm, DocumentUpdateForm
from shared.models.user import AppUser
from services.archive.ArchiveStore import ArchiveStore
from services.archive.CategoryStore import CategoryStore
from services.archive.SessionAdapter import SessionAdapter


class DocumentStore(ArchiveStore):
    """
    Document cache ordered newest first, bound to the session: it is loaded and
    subscribed while a user is signed in and emptied on sign out.

    Every create, delete and category change also adjusts the denormalized count
    on the category store. That second write is not transactional; when it fails
    the document write stands and a ConsistencyGapError is raised.
    """

    def __init__(
        self,
        helper_config: HelperConfig,
        backend_client: BackendClientInterface,
        session: SessionAdapter,
        category_store: CategoryStore,
    ):
        super().__init__(helper_config=helper_config, backend_client=backend_client, session=session)
        self._category_store = category_store
        self.documents: list[Document] = []
        self._unbind_session: Callable[[], None] | None = None
        self._bound_uid: str | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_collection(self) -> str:
        return COLLECTION_DOCUMENTS

    def _get_query(self) -> QuerySpec:
        return QuerySpec(order_by="createdAt", descending=True)

    def get_document(self, document_id: str) -> Document:
        """
        Raises:
            NotFoundError: If the document is not in the local cache.
        """
        for document in self.documents:
            if document.id == document_id:
                return document
        raise NotFoundError(f"Document '{document_id}' not found.")

    def open_document(self, document_id: str, password: str | None = None) -> Document:
        """Return a cached document, checking the lock password of locked documents.

        Raises:
            NotFoundError: If the document is not cached.
            PermissionDeniedError: If the document is locked and the password does not match.
        """
        document = self.get_document(document_id)
        if not document.is_unlocked_by(password):
            raise PermissionDeniedError("This document is locked. Please enter the correct password.")
        return document

    ##########################################
    ############ SESSION BINDING #############
    ##########################################

    async def start(self) -> None:
        """Follow the session: load and subscribe while signed in, clear on sign out."""
        if self._unbind_session is None:
            self._unbind_session = self._session.on_change(self._handle_session_change)
        await self._handle_session_change(self._session.user)

    async def close(self) -> None:
        if self._unbind_session is not None:
            self._unbind_session()
            self._unbind_session = None
        await super().close()

    async def _handle_session_change(self, user: AppUser | None) -> None:
        if user is None:
            self._bound_uid = None
            self._stop_subscription()
            self.documents = []
            return
        # profile edits notify with the same uid
        if user.uid == self._bound_uid:
            return
        self._bound_uid = user.uid
        self._stop_subscription()
        await self.load()
        self.subscribe()

    ##########################################
    ################ LOADING #################
    ##########################################

    async def load(self) -> None:
        """Query all documents newest first. Without a signed-in user the cache is emptied."""
        if not self._session.is_authenticated:
            self.documents = []
            return
        await self._load_records()

    async def refresh(self) -> None:
        await self.load()

    def subscribe(self) -> Unsubscribe:
        """Start the live subscription; every snapshot replaces the cache.

        Raises:
            PermissionDeniedError: If nobody is signed in.
        """
        if not self._session.is_authenticated:
            raise PermissionDeniedError("Please sign in to view documents.")
        return self._start_subscription()

    def _replace_cache(self, records: list[dict]) -> None:
        documents = []
        for record in records:
            try:
                documents.append(Document.model_validate(record))
            except ValidationError as e:
                self.logging.warning("Skipping malformed document record '%s': %s", record.get("id"), e)
        self.documents = documents

    ##########################################
    ############### MUTATIONS ################
    ##########################################

    async def create(self, form: DocumentForm) -> str:
        """Write a new document and count it in its category.

        Returns:
            str: The id of the new document.

        Raises:
            PermissionDeniedError: If the session user is not an admin.
            FormValidationError: If the form is incomplete or the category does not exist.
            BackendError: If the document write fails.
            ConsistencyGapError: If the document was written but its category count was not.
        """
        self._require_admin("create documents")
        form.ensure_valid()
        self._require_category(form.category)
        user = self._session.user
        record = form.to_record(author=user.name, author_uid=user.uid)

        try:
            document_id = await self._backend.do_create(COLLECTION_DOCUMENTS, record)
        except Exception as e:
            raise self._record_error("Could not save the document.", e)
        self.logging.info("Created document '%s' in category '%s'", document_id, record["category"])

        await self._adjust_counts(document_id, [(record["category"], 1)])
        self.error = None
        return document_id

    async def update(self, document_id: str, form: DocumentUpdateForm) -> None:
        """Write only the fields set on ``form``. A category change moves the document between counts.

        Raises:
            PermissionDeniedError: If the session user is not an admin.
            NotFoundError: If the document is not cached.
            FormValidationError: If a set field is blank or locking leaves no password, or the new category does not exist.
            BackendError: If the write fails.
            ConsistencyGapError: If the document was written but the counts were not.
        """
        self._require_admin("edit documents")
        current = self.get_document(document_id)
        form.ensure_valid(current)
        partial = form.to_partial_record()
        if not partial:
            return
        if partial.get("category") not in (None, current.category):
            self._require_category(partial["category"])

        try:
            await self._backend.do_update(COLLECTION_DOCUMENTS, document_id, partial)
        except Exception as e:
            raise self._record_error("Could not update the document.", e)

        new_category = partial.get("category")
        if new_category is not None and new_category != current.category:
            await self._adjust_counts(document_id, [(current.category, -1), (new_category, 1)])
        self.error = None

    async def delete(self, document_id: str) -> None:
        """Delete a cached document and uncount it from its category.

        Raises:
            PermissionDeniedError: If the session user is not an admin.
            NotFoundError: If the document is not cached.
            BackendError: If the delete fails.
            ConsistencyGapError: If the document was deleted but its category count was not updated.
        """
        self._require_admin("delete documents")
        document = self.get_document(document_id)

        try:
            await self._backend.do_delete(COLLECTION_DOCUMENTS, document_id)
        except Exception as e:
            raise self._record_error("Could not delete the document.", e)
        self.logging.info("Deleted document '%s'", document_id)

        await self._adjust_counts(document_id, [(document.category, -1)])
        self.error = None

    def _require_category(self, name: str) -> None:
        """
        Raises:
            FormValidationError: If no cached category carries this name.
        """
        if self._category_store.get_category_by_name(name) is None:
            raise FormValidationError(f"Category '{name}' does not exist. Please choose an existing category.")

    async def _adjust_counts(self, document_id: str, changes: list[tuple[str, int]]) -> None:
        for name, delta in changes:
            try:
                await self._category_store.adjust_count(name, delta)
            except BackendError as e:
                message = f"Document '{document_id}' was written but the count of category '{name}' could not be updated."
                self.logging.error(message)
                self.error = message
                raise ConsistencyGapError(message, document_id=document_id, cause=e.cause)
