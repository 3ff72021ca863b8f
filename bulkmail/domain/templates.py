"""Template selection and per-destination template data.

Mental model refresher:
- Each request kind maps to one SES template and one fixed-shape JSON object.
- Field bytes are untrusted: they are coerced to text and serialized with
  `json.dumps`, never spliced into a JSON string by hand.
"""

from __future__ import annotations

import json
from typing import Any, Sequence

from ..types import BulkRequestDict
from .records import Record, RequestKind

TEMPLATE_NAMES = {
    RequestKind.ACTIVATION: "activationv1",
    RequestKind.PASSWORD_RECOVERY: "passwordrecoveryv1",
}

DEFAULT_TEMPLATE_DATA = {
    RequestKind.ACTIVATION: '{"login":"","secret":""}',
    RequestKind.PASSWORD_RECOVERY: '{"login":"","secret":"","code":""}',
}


def template_data_for(record: Record) -> str:
    """Serialize the replacement data one destination receives."""
    data: dict[str, Any] = {
        "login": _as_text(record.login),
        "secret": _as_text(record.secret),
    }
    if record.kind is RequestKind.PASSWORD_RECOVERY:
        data["code"] = _as_text(record.code)
    return _serialize_json_object(data)


def build_bulk_request(kind: RequestKind, records: Sequence[Record]) -> BulkRequestDict:
    """Describe one bulk templated send for a drained batch."""
    return {
        "kind": kind,
        "template": TEMPLATE_NAMES[kind],
        "default_template_data": DEFAULT_TEMPLATE_DATA[kind],
        "destinations": [
            {
                "to_address": _as_text(record.to_address),
                "template_data": template_data_for(record),
            }
            for record in records
        ],
    }


def _as_text(value: bytes) -> str:
    return value.decode("utf-8", errors="replace")


def _serialize_json_object(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)
