import logging

import pytest
import pytest_asyncio

from shared.clients.backend.memory.BackendClientMemory import BackendClientMemory
from shared.clients.backend.models.Query import QuerySpec
from shared.clients.identity.memory.IdentityClientMemory import IdentityClientMemory
from shared.helper.HelperConfig import HelperConfig
from services.archive.CategoryStore import CategoryStore
from services.archive.DocumentStore import DocumentStore
from services.archive.SessionAdapter import SessionAdapter
from tests.helpers import ADMIN_KEY, signup_form

_ARCHIVE_ENV_KEYS = [
    "BACKEND_ENGINE",
    "IDENTITY_ENGINE",
    "ARCHIVE_ADMIN_KEY",
    "ARCHIVE_ADMIN_EMAILS",
    "ARCHIVE_PREVIEW_LENGTH",
    "RENDER_HTML_SANDBOX",
    "IDENTITY_MEMORY_MAX_FAILED_ATTEMPTS",
    "IDENTITY_MEMORY_SIGNUP_ENABLED",
]


class RecordingBackend(BackendClientMemory):
    """Memory backend that records every gateway call, optionally failing selected ones."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.calls: list[tuple] = []
        self.failures: dict[str, Exception] = {}

    def reset_calls(self) -> None:
        self.calls.clear()

    def _record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    async def do_get(self, collection: str, record_id: str) -> dict | None:
        self._record("get", collection, record_id)
        return await super().do_get(collection, record_id)

    async def do_query(self, collection: str, query: QuerySpec | None = None) -> list[dict]:
        self._record("query", collection)
        return await super().do_query(collection, query)

    async def do_create(self, collection: str, data: dict, doc_id: str | None = None) -> str:
        self._record("create", collection)
        return await super().do_create(collection, data, doc_id=doc_id)

    async def do_update(self, collection: str, record_id: str, partial: dict) -> None:
        self._record("update", collection, record_id)
        await super().do_update(collection, record_id, partial)

    async def do_delete(self, collection: str, record_id: str) -> None:
        self._record("delete", collection, record_id)
        await super().do_delete(collection, record_id)


@pytest.fixture
def helper_config(monkeypatch) -> HelperConfig:
    for key in _ARCHIVE_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return HelperConfig(logger=logging.getLogger("archive.tests"))


@pytest.fixture
def backend(helper_config) -> RecordingBackend:
    return RecordingBackend(helper_config=helper_config)


@pytest.fixture
def identity(helper_config) -> IdentityClientMemory:
    return IdentityClientMemory(helper_config=helper_config)


@pytest_asyncio.fixture
async def session(helper_config, identity, backend):
    session = SessionAdapter(helper_config=helper_config, identity_client=identity, backend_client=backend)
    await session.start()
    yield session
    await session.close()


@pytest_asyncio.fixture
async def category_store(helper_config, backend, session):
    store = CategoryStore(helper_config=helper_config, backend_client=backend, session=session)
    await store.load()
    store.subscribe()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def document_store(helper_config, backend, session, category_store):
    store = DocumentStore(helper_config=helper_config, backend_client=backend, session=session, category_store=category_store)
    await store.start()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def admin(session):
    return await session.sign_up(signup_form("Ada", "ada@example.com", admin_key=ADMIN_KEY))


@pytest_asyncio.fixture
async def viewer(session):
    return await session.sign_up(signup_form("Vic", "vic@example.com"))
