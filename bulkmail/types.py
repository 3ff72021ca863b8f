"""Shared type aliases for the bulkmail package."""

from __future__ import annotations

from typing import Any, Callable, Mapping

BulkRequest = Mapping[str, Any]
BulkRequestDict = dict[str, Any]
DispatchOutcome = dict[str, Any]
HttpCapture = dict[str, Any]
FlushResult = dict[str, Any]
Settings = dict[str, Any]

SendBulkFn = Callable[[BulkRequest], DispatchOutcome]
LineCompleteFn = Callable[[], None]
EmitFn = Callable[[str], None]

OUTCOME_SUCCESS = "success"
OUTCOME_SERVICE_ERROR = "service_error"
OUTCOME_TIMEOUT = "timeout"
OUTCOME_TRANSPORT_FAILURE = "transport_failure"
OUTCOME_UNKNOWN = "unknown"
