import asyncio
import uuid

from shared.clients.backend.BackendClientInterface import BackendClientInterface, SnapshotCallback, ErrorCallback, Unsubscribe
from shared.clients.backend.firestore.codec import decode_document, encode_fields, encode_value
from shared.clients.backend.models.Query import QuerySpec
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

_OPERATORS = {
    "==": "EQUAL",
    "!=": "NOT_EQUAL",
    "<": "LESS_THAN",
    "<=": "LESS_THAN_OR_EQUAL",
    ">": "GREATER_THAN",
    ">=": "GREATER_THAN_OR_EQUAL",
}


class BackendClientFirestore(BackendClientInterface):
    """
    Firestore over its REST API. Timestamps are assigned server side through
    commit transforms; live subscriptions are implemented by polling the
    standing query and delivering a snapshot whenever the result changes.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://firestore.googleapis.com/v1", val_type="string")
        self._project_id = self.get_config_val("PROJECT_ID", default=None, val_type="string")
        self._database = self.get_config_val("DATABASE", default="(default)", val_type="string")
        self._poll_interval = self.get_config_val("POLL_INTERVAL", default=5, val_type="number")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Firestore"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://firestore.googleapis.com/v1"),
            EnvConfig(env_key="PROJECT_ID", val_type="string", default=None),
            EnvConfig(env_key="DATABASE", val_type="string", default="(default)"),
            EnvConfig(env_key="POLL_INTERVAL", val_type="number", default=5),
        ]

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_database_path(self) -> str:
        return f"projects/{self._project_id}/databases/{self._database}"

    def _get_documents_root(self) -> str:
        return f"{self._get_database_path()}/documents"

    def _get_document_name(self, collection: str, record_id: str) -> str:
        return f"{self._get_documents_root()}/{collection}/{record_id}"

    def _get_endpoint_healthcheck(self) -> str:
        return f"/{self._get_documents_root()}/categories?pageSize=1"

    def _get_endpoint_document(self, collection: str, record_id: str) -> str:
        return f"/{self._get_document_name(collection, record_id)}"

    def _get_endpoint_run_query(self) -> str:
        return f"/{self._get_documents_root()}:runQuery"

    def _get_endpoint_commit(self) -> str:
        return f"/{self._get_documents_root()}:commit"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def _build_structured_query(self, collection: str, query: QuerySpec | None) -> dict:
        structured: dict = {"from": [{"collectionId": collection}]}
        if query is None:
            return {"structuredQuery": structured}

        field_filters = [
            {
                "fieldFilter": {
                    "field": {"fieldPath": f.field},
                    "op": _OPERATORS[f.op],
                    "value": encode_value(f.value),
                }
            }
            for f in query.filters
        ]
        if len(field_filters) == 1:
            structured["where"] = field_filters[0]
        elif field_filters:
            structured["where"] = {"compositeFilter": {"op": "AND", "filters": field_filters}}

        if query.order_by:
            structured["orderBy"] = [{
                "field": {"fieldPath": query.order_by},
                "direction": "DESCENDING" if query.descending else "ASCENDING",
            }]
        if query.limit is not None:
            structured["limit"] = query.limit
        return {"structuredQuery": structured}

    def _build_timestamp_transforms(self, *field_paths: str) -> list[dict]:
        return [{"fieldPath": path, "setToServerValue": "REQUEST_TIME"} for path in field_paths]

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_get(self, collection: str, record_id: str) -> dict | None:
        resp = await self.do_request(method="GET", endpoint=self._get_endpoint_document(collection, record_id))
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return decode_document(resp.json())

    async def do_query(self, collection: str, query: QuerySpec | None = None) -> list[dict]:
        resp = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_run_query(),
            json=self._build_structured_query(collection, query),
            raise_on_error=True,
        )
        # entries without "document" only carry a readTime
        return [decode_document(entry["document"]) for entry in resp.json() if "document" in entry]

    async def do_create(self, collection: str, data: dict, doc_id: str | None = None) -> str:
        record_id = doc_id or uuid.uuid4().hex[:20]
        fields = {key: value for key, value in data.items() if key not in ("id", "createdAt", "updatedAt")}
        write: dict = {
            "update": {"name": self._get_document_name(collection, record_id), "fields": encode_fields(fields)},
            "updateTransforms": self._build_timestamp_transforms("createdAt", "updatedAt"),
        }
        # generated ids must not collide, explicit ids overwrite
        if doc_id is None:
            write["currentDocument"] = {"exists": False}
        await self.do_request(method="POST", endpoint=self._get_endpoint_commit(), json={"writes": [write]}, raise_on_error=True)
        self.logging.debug("Created record '%s' in collection '%s'", record_id, collection)
        return record_id

    async def do_update(self, collection: str, record_id: str, partial: dict) -> None:
        fields = {key: value for key, value in partial.items() if key not in ("id", "createdAt", "updatedAt")}
        write = {
            "update": {"name": self._get_document_name(collection, record_id), "fields": encode_fields(fields)},
            "updateMask": {"fieldPaths": list(fields.keys())},
            "updateTransforms": self._build_timestamp_transforms("updatedAt"),
            "currentDocument": {"exists": True},
        }
        await self.do_request(method="POST", endpoint=self._get_endpoint_commit(), json={"writes": [write]}, raise_on_error=True)

    async def do_delete(self, collection: str, record_id: str) -> None:
        await self.do_request(method="DELETE", endpoint=self._get_endpoint_document(collection, record_id), raise_on_error=True)

    ##########################################
    ############ SUBSCRIPTIONS ###############
    ##########################################

    def subscribe(self, collection: str, query: QuerySpec | None, callback: SnapshotCallback, on_error: ErrorCallback | None = None) -> Unsubscribe:
        task = asyncio.get_running_loop().create_task(self._poll(collection, query, callback, on_error))
        self.logging.debug("Polling collection '%s' every %ss", collection, self._poll_interval)

        def unsubscribe() -> None:
            task.cancel()

        return unsubscribe

    async def _poll(self, collection: str, query: QuerySpec | None, callback: SnapshotCallback, on_error: ErrorCallback | None) -> None:
        last_snapshot: list[dict] | None = None
        while True:
            try:
                snapshot = await self.do_query(collection, query)
                if snapshot != last_snapshot:
                    last_snapshot = snapshot
                    callback(snapshot)
            except Exception as e:
                self.logging.error("Polling collection '%s' failed: %s", collection, e)
                if on_error:
                    on_error(e)
            await asyncio.sleep(self._poll_interval)
