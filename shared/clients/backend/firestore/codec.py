"""Conversion between plain Python values and Firestore REST typed values.

Only used inside BackendClientFirestore.
"""

import re
from datetime import datetime, timezone
from typing import Any

# Firestore returns up to nanosecond precision, datetime keeps microseconds
_FRACTION = re.compile(r"\.(\d{6})\d+")


def encode_value(value: Any) -> dict:
    if value is None:
        return {"nullValue": None}
    # bool before int, bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return {"timestampValue": value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")}
    if isinstance(value, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(v) for v in value]}}
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value)}}
    return {"stringValue": str(value)}


def encode_fields(data: dict) -> dict:
    return {key: encode_value(value) for key, value in data.items()}


def decode_value(value: dict) -> Any:
    if "nullValue" in value:
        return None
    if "booleanValue" in value:
        return value["booleanValue"]
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "stringValue" in value:
        return value["stringValue"]
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "referenceValue" in value:
        return value["referenceValue"]
    raise ValueError(f"Unsupported Firestore value: {value}")


def decode_fields(fields: dict) -> dict:
    return {key: decode_value(value) for key, value in fields.items()}


def parse_timestamp(raw: str) -> datetime:
    raw = _FRACTION.sub(lambda m: "." + m.group(1), raw)
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


def decode_document(document: dict) -> dict:
    """Turn a REST document resource into a record dict with its "id"."""
    record_id = document["name"].rsplit("/", 1)[-1]
    return {"id": record_id, **decode_fields(document.get("fields", {}))}
