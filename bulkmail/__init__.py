"""Stream-fed bulk templated email sender for activation and recovery mails."""

from .adapters import (
    LineEvent,
    RecordParser,
    SesBulkSender,
    handle_dispatch_outcome,
    run_batch_counter,
    run_sender_forever,
    send_bulk_via_console,
    write_http_diagnostic,
)
from .application import flush_batches, report_batch_counts
from .domain import Batch, BatchStore, Record, RequestKind, build_bulk_request
from .errors import (
    BatchCapacityExceededError,
    FieldTooLongError,
    InvalidKindTokenError,
    ParseError,
)

__all__ = [
    "Batch",
    "BatchCapacityExceededError",
    "BatchStore",
    "FieldTooLongError",
    "InvalidKindTokenError",
    "LineEvent",
    "ParseError",
    "Record",
    "RecordParser",
    "RequestKind",
    "SesBulkSender",
    "build_bulk_request",
    "flush_batches",
    "handle_dispatch_outcome",
    "report_batch_counts",
    "run_batch_counter",
    "run_sender_forever",
    "send_bulk_via_console",
    "write_http_diagnostic",
]
