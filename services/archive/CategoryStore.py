from pydantic import ValidationError

from shared.clients.backend.BackendClientInterface import BackendClientInterface, COLLECTION_CATEGORIES, Unsubscribe
from shared.clients.backend.models.Query import QuerySpec
from shared.errors import CategoryInUseError, FormValidationError, NotFoundError
from shared.helper.HelperConfig import HelperConfig
from shared.models.category import Category, CategoryForm, CategoryUpdateForm, SYSTEM_CREATOR, default_categories
from services.archive.ArchiveStore import ArchiveStore
from services.archive.SessionAdapter import SessionAdapter


class CategoryStore(ArchiveStore):
    """
    Category cache ordered by name, plus the role gated category mutations and
    the denormalized document count maintenance used by the document store.
    """

    def __init__(self, helper_config: HelperConfig, backend_client: BackendClientInterface, session: SessionAdapter):
        super().__init__(helper_config=helper_config, backend_client=backend_client, session=session)
        self.categories: list[Category] = []

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_collection(self) -> str:
        return COLLECTION_CATEGORIES

    def _get_query(self) -> QuerySpec:
        return QuerySpec(order_by="name")

    def get_category(self, category_id: str) -> Category:
        """
        Raises:
            NotFoundError: If the category is not in the local cache.
        """
        for category in self.categories:
            if category.id == category_id:
                return category
        raise NotFoundError(f"Category '{category_id}' not found.")

    def get_category_by_name(self, name: str) -> Category | None:
        return next((category for category in self.categories if category.name == name), None)

    ##########################################
    ################ LOADING #################
    ##########################################

    async def load(self) -> None:
        """Seed the default categories into an empty archive, then load all categories by name.

        Two processes starting on an empty archive at the same time may both seed.
        """
        self.loading = True
        try:
            await self._seed_defaults()
        except Exception as e:
            self.loading = False
            self._record_error("Could not seed the default categories.", e)
            return
        await self._load_records()

    async def refresh(self) -> None:
        await self.load()

    def subscribe(self) -> Unsubscribe:
        """Start the live subscription; every snapshot replaces the cache."""
        return self._start_subscription()

    async def _seed_defaults(self) -> None:
        existing = await self._backend.do_query(COLLECTION_CATEGORIES, QuerySpec(limit=1))
        if existing:
            return
        defaults = default_categories()
        self.logging.info("Category collection is empty, seeding %d default categories", len(defaults))
        for form in defaults:
            await self._backend.do_create(COLLECTION_CATEGORIES, form.to_record(created_by=SYSTEM_CREATOR))

    def _replace_cache(self, records: list[dict]) -> None:
        categories = []
        for record in records:
            try:
                categories.append(Category.model_validate(record))
            except ValidationError as e:
                self.logging.warning("Skipping malformed category record '%s': %s", record.get("id"), e)
        self.categories = categories

    ##########################################
    ############### MUTATIONS ################
    ##########################################

    async def create(self, form: CategoryForm) -> str:
        """Create a category with count 0.

        Returns:
            str: The id of the new category.

        Raises:
            PermissionDeniedError: If the session user is not an admin.
            FormValidationError: If the name is blank, the color unknown or the name already taken.
            BackendError: If the write fails.
        """
        self._require_admin("create categories")
        form.ensure_valid()
        name = form.name.strip()
        # checked against the cache only, concurrent creates can still collide
        if any(category.name.lower() == name.lower() for category in self.categories):
            raise FormValidationError(f"A category named '{name}' already exists.")

        try:
            category_id = await self._backend.do_create(COLLECTION_CATEGORIES, form.to_record(created_by=self._session.user.uid))
        except Exception as e:
            raise self._record_error("Could not create the category.", e)
        self.error = None
        self.logging.info("Created category '%s' (%s)", name, category_id)
        return category_id

    async def update(self, category_id: str, form: CategoryUpdateForm) -> None:
        """Write only the fields set on ``form``.

        Documents keep the category name they were filed under; renaming does not move them.
        """
        self._require_admin("edit categories")
        form.ensure_valid()
        partial = form.to_partial_record()
        if not partial:
            return

        try:
            await self._backend.do_update(COLLECTION_CATEGORIES, category_id, partial)
        except Exception as e:
            raise self._record_error("Could not update the category.", e)
        self.error = None

    async def delete(self, category_id: str) -> None:
        """Delete an empty category.

        Raises:
            PermissionDeniedError: If the session user is not an admin.
            NotFoundError: If the category is not cached.
            CategoryInUseError: If the cached count is above zero.
            BackendError: If the delete fails.
        """
        self._require_admin("delete categories")
        category = self.get_category(category_id)
        if category.count > 0:
            raise CategoryInUseError(f"Category '{category.name}' still holds {category.count} documents and cannot be deleted.")

        try:
            await self._backend.do_delete(COLLECTION_CATEGORIES, category_id)
        except Exception as e:
            raise self._record_error("Could not delete the category.", e)
        self.error = None
        self.logging.info("Deleted category '%s'", category.name)

    async def adjust_count(self, name: str, delta: int) -> None:
        """Add ``delta`` to the document count of the category called ``name``, clamped at zero.

        The current count is read from the backend, not from the cache. An unknown
        name is logged and ignored.

        Raises:
            BackendError: If the read or the write fails.
        """
        try:
            records = await self._backend.do_query(COLLECTION_CATEGORIES, QuerySpec(limit=1).where("name", "==", name))
            if not records:
                self.logging.warning("No category named '%s', count not adjusted by %+d", name, delta)
                return
            record = records[0]
            count = max(0, int(record.get("count") or 0) + delta)
            await self._backend.do_update(COLLECTION_CATEGORIES, record["id"], {"count": count})
        except Exception as e:
            raise self._record_error(f"Could not update the document count of category '{name}'.", e)
        self.logging.debug("Category '%s' count is now %d", name, count)
