import json
import logging

import httpx
import pytest

from shared.clients.backend.BackendClientManager import BackendClientManager
from shared.clients.backend.firestore.BackendClientFirestore import BackendClientFirestore
from shared.clients.backend.firestore.codec import decode_document, encode_fields, parse_timestamp
from shared.clients.backend.memory.BackendClientMemory import BackendClientMemory
from shared.clients.backend.models.Query import QuerySpec
from shared.helper.HelperConfig import HelperConfig


@pytest.fixture
def memory(helper_config) -> BackendClientMemory:
    return BackendClientMemory(helper_config=helper_config)


class TestBackendMemory:
    @pytest.mark.asyncio
    async def test_create_stamps_timestamps_and_returns_id(self, memory):
        record_id = await memory.do_create("categories", {"name": "QA", "count": 0})
        record = await memory.do_get("categories", record_id)
        assert record["id"] == record_id
        assert record["name"] == "QA"
        assert record["createdAt"] == record["updatedAt"]

    @pytest.mark.asyncio
    async def test_explicit_id_sets_the_record(self, memory):
        await memory.do_create("users", {"name": "a"}, doc_id="uid-1")
        await memory.do_create("users", {"name": "b"}, doc_id="uid-1")
        assert (await memory.do_get("users", "uid-1"))["name"] == "b"

    @pytest.mark.asyncio
    async def test_update_is_partial_and_keeps_created_at(self, memory):
        record_id = await memory.do_create("categories", {"name": "QA", "count": 1})
        before = await memory.do_get("categories", record_id)
        await memory.do_update("categories", record_id, {"count": 2, "createdAt": None})
        after = await memory.do_get("categories", record_id)
        assert after["name"] == "QA"
        assert after["count"] == 2
        assert after["createdAt"] == before["createdAt"]
        assert after["updatedAt"] >= after["createdAt"]

    @pytest.mark.asyncio
    async def test_update_of_missing_record_fails(self, memory):
        with pytest.raises(LookupError):
            await memory.do_update("categories", "missing", {"count": 1})

    @pytest.mark.asyncio
    async def test_query_filters_orders_and_limits(self, memory):
        for name in ["b", "c", "a"]:
            await memory.do_create("categories", {"name": name, "count": 0})
        ordered = await memory.do_query("categories", QuerySpec(order_by="name"))
        assert [r["name"] for r in ordered] == ["a", "b", "c"]
        descending = await memory.do_query("categories", QuerySpec(order_by="name", descending=True, limit=2))
        assert [r["name"] for r in descending] == ["c", "b"]
        filtered = await memory.do_query("categories", QuerySpec().where("name", "==", "b"))
        assert [r["name"] for r in filtered] == ["b"]

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, memory):
        record_id = await memory.do_create("documents", {"title": "t", "tags": ["a"]})
        record = await memory.do_get("documents", record_id)
        record["tags"].append("b")
        assert (await memory.do_get("documents", record_id))["tags"] == ["a"]

    @pytest.mark.asyncio
    async def test_subscription_delivers_initial_and_changed_snapshots(self, memory):
        snapshots = []
        unsubscribe = memory.subscribe("categories", QuerySpec(order_by="name"), snapshots.append)
        await memory.do_create("categories", {"name": "b"})
        await memory.do_create("documents", {"title": "other collection"})
        await memory.do_create("categories", {"name": "a"})
        assert [[r["name"] for r in s] for s in snapshots] == [[], ["b"], ["a", "b"]]

        unsubscribe()
        unsubscribe()
        await memory.do_create("categories", {"name": "c"})
        assert len(snapshots) == 3
        assert memory.get_subscription_count() == 0

    @pytest.mark.asyncio
    async def test_delete(self, memory):
        record_id = await memory.do_create("documents", {"title": "t"})
        await memory.do_delete("documents", record_id)
        await memory.do_delete("documents", record_id)
        assert await memory.do_get("documents", record_id) is None


class TestBackendManager:
    def test_memory_is_the_default_engine(self, helper_config):
        assert isinstance(BackendClientManager(helper_config=helper_config).get_client(), BackendClientMemory)

    def test_unknown_engine_is_rejected(self, monkeypatch, helper_config):
        monkeypatch.setenv("BACKEND_ENGINE", "nosuchdb")
        with pytest.raises(ValueError):
            BackendClientManager(helper_config=helper_config)

    def test_firestore_requires_a_project_id(self, monkeypatch, helper_config):
        monkeypatch.setenv("BACKEND_ENGINE", "firestore")
        monkeypatch.delenv("BACKEND_FIRESTORE_PROJECT_ID", raising=False)
        with pytest.raises(ValueError):
            BackendClientManager(helper_config=helper_config)


class TestFirestoreCodec:
    def test_encode_fields(self):
        assert encode_fields({"n": 1, "b": True, "s": "x", "l": ["a"], "none": None}) == {
            "n": {"integerValue": "1"},
            "b": {"booleanValue": True},
            "s": {"stringValue": "x"},
            "l": {"arrayValue": {"values": [{"stringValue": "a"}]}},
            "none": {"nullValue": None},
        }

    def test_decode_document(self):
        document = {
            "name": "projects/p/databases/(default)/documents/categories/abc",
            "fields": {"name": {"stringValue": "QA"}, "count": {"integerValue": "3"}},
        }
        assert decode_document(document) == {"id": "abc", "name": "QA", "count": 3}

    def test_nanosecond_timestamps(self):
        parsed = parse_timestamp("2024-05-01T10:00:00.123456789Z")
        assert parsed.microsecond == 123456
        assert parsed.tzinfo is not None


class TestBackendFirestore:
    @pytest.fixture
    def firestore(self, monkeypatch) -> BackendClientFirestore:
        monkeypatch.setenv("BACKEND_FIRESTORE_PROJECT_ID", "demo")
        return BackendClientFirestore(helper_config=HelperConfig(logger=logging.getLogger("archive.tests")))

    @pytest.mark.asyncio
    async def test_query_sends_structured_query(self, firestore):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json=[
                {"document": {"name": "projects/demo/databases/(default)/documents/categories/c1", "fields": {"name": {"stringValue": "QA"}}}},
                {"readTime": "2024-05-01T10:00:00Z"},
            ])

        await firestore.boot(transport=httpx.MockTransport(handler))
        firestore.set_token_provider(lambda: "token-1")
        records = await firestore.do_query("categories", QuerySpec(order_by="name", limit=1).where("name", "==", "QA"))
        await firestore.close()

        assert records == [{"id": "c1", "name": "QA"}]
        request = requests[0]
        assert request.url.path == "/v1/projects/demo/databases/(default)/documents:runQuery"
        assert request.headers["Authorization"] == "Bearer token-1"
        structured = json.loads(request.content)["structuredQuery"]
        assert structured["from"] == [{"collectionId": "categories"}]
        assert structured["where"]["fieldFilter"]["op"] == "EQUAL"
        assert structured["orderBy"] == [{"field": {"fieldPath": "name"}, "direction": "ASCENDING"}]
        assert structured["limit"] == 1

    @pytest.mark.asyncio
    async def test_update_commits_masked_fields_with_server_timestamp(self, firestore):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"writeResults": [{}]})

        await firestore.boot(transport=httpx.MockTransport(handler))
        await firestore.do_update("categories", "c1", {"count": 4, "updatedAt": "ignored"})
        await firestore.close()

        write = bodies[0]["writes"][0]
        assert write["update"]["name"].endswith("/documents/categories/c1")
        assert write["update"]["fields"] == {"count": {"integerValue": "4"}}
        assert write["updateMask"] == {"fieldPaths": ["count"]}
        assert write["updateTransforms"] == [{"fieldPath": "updatedAt", "setToServerValue": "REQUEST_TIME"}]
        assert write["currentDocument"] == {"exists": True}

    @pytest.mark.asyncio
    async def test_get_missing_record_returns_none(self, firestore):
        await firestore.boot(transport=httpx.MockTransport(lambda request: httpx.Response(404, json={})))
        assert await firestore.do_get("users", "nobody") is None
        await firestore.close()

    @pytest.mark.asyncio
    async def test_failed_write_raises(self, firestore):
        await firestore.boot(transport=httpx.MockTransport(lambda request: httpx.Response(403, json={"error": {}})))
        with pytest.raises(httpx.HTTPStatusError):
            await firestore.do_delete("documents", "d1")
        await firestore.close()
