import copy
import itertools
import operator
import uuid
from datetime import datetime, timezone

import httpx

from shared.clients.backend.BackendClientInterface import BackendClientInterface, SnapshotCallback, ErrorCallback, Unsubscribe
from shared.clients.backend.models.Query import QuerySpec
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

_OPERATORS = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


class BackendClientMemory(BackendClientInterface):
    """
    In-process document database. Subscriptions are delivered synchronously,
    initially on subscribe and after every write to the subscribed collection.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._collections: dict[str, dict[str, dict]] = {}
        # insertion order breaks ties between equal sort keys
        self._sequence = itertools.count()
        self._order: dict[tuple[str, str], int] = {}
        self._subscriptions: dict[int, tuple[str, QuerySpec | None, SnapshotCallback]] = {}
        self._subscription_ids = itertools.count()

    ##########################################
    ################ GETTER ##################
    ##########################################

    def _get_engine_name(self) -> str:
        return "Memory"

    def _get_required_config(self) -> list[EnvConfig]:
        return []

    def _get_base_url(self) -> str:
        return "memory://"

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    def get_subscription_count(self) -> int:
        return len(self._subscriptions)

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        return httpx.Response(200)

    async def do_get(self, collection: str, record_id: str) -> dict | None:
        record = self._collections.get(collection, {}).get(record_id)
        return self._export(record_id, record) if record is not None else None

    async def do_query(self, collection: str, query: QuerySpec | None = None) -> list[dict]:
        return self._run_query(collection, query)

    async def do_create(self, collection: str, data: dict, doc_id: str | None = None) -> str:
        record_id = doc_id or uuid.uuid4().hex[:20]
        now = self._now()
        record = copy.deepcopy(data)
        record.pop("id", None)
        record["createdAt"] = now
        record["updatedAt"] = now
        self._collections.setdefault(collection, {})[record_id] = record
        self._order[(collection, record_id)] = next(self._sequence)
        self._notify(collection)
        return record_id

    async def do_update(self, collection: str, record_id: str, partial: dict) -> None:
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise LookupError(f"No record '{record_id}' in collection '{collection}'.")
        changes = copy.deepcopy(partial)
        changes.pop("id", None)
        # creation data is immutable
        changes.pop("createdAt", None)
        record.update(changes)
        record["updatedAt"] = max(self._now(), record["createdAt"])
        self._notify(collection)

    async def do_delete(self, collection: str, record_id: str) -> None:
        if self._collections.get(collection, {}).pop(record_id, None) is not None:
            self._order.pop((collection, record_id), None)
            self._notify(collection)

    def subscribe(self, collection: str, query: QuerySpec | None, callback: SnapshotCallback, on_error: ErrorCallback | None = None) -> Unsubscribe:
        subscription_id = next(self._subscription_ids)
        self._subscriptions[subscription_id] = (collection, query, callback)
        self.logging.debug("Subscribed #%d to collection '%s'", subscription_id, collection)
        callback(self._run_query(collection, query))

        def unsubscribe() -> None:
            if self._subscriptions.pop(subscription_id, None) is not None:
                self.logging.debug("Unsubscribed #%d from collection '%s'", subscription_id, collection)

        return unsubscribe

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _export(self, record_id: str, record: dict) -> dict:
        return {"id": record_id, **copy.deepcopy(record)}

    def _run_query(self, collection: str, query: QuerySpec | None) -> list[dict]:
        records = self._collections.get(collection, {})
        matches = [
            (record_id, record)
            for record_id, record in records.items()
            if query is None or all(self._matches(record, f.field, f.op, f.value) for f in query.filters)
        ]
        matches.sort(key=lambda item: self._order[(collection, item[0])])
        if query is not None and query.order_by:
            field = query.order_by
            # records missing the field sort first; equal values fall back to write order
            matches.sort(
                key=lambda item: (
                    item[1].get(field) is not None,
                    item[1].get(field) if item[1].get(field) is not None else 0,
                    self._order[(collection, item[0])],
                ),
                reverse=query.descending,
            )
        if query is not None and query.limit is not None:
            matches = matches[: query.limit]
        return [self._export(record_id, record) for record_id, record in matches]

    def _matches(self, record: dict, field: str, op: str, value) -> bool:
        if field not in record:
            return False
        try:
            return _OPERATORS[op](record[field], value)
        except TypeError:
            return False

    def _notify(self, collection: str) -> None:
        for subscribed_collection, query, callback in list(self._subscriptions.values()):
            if subscribed_collection == collection:
                callback(self._run_query(collection, query))
