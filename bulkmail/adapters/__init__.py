"""Adapter layer: stream decoding, sender implementations and stdin loops."""

from .failure_capture import handle_dispatch_outcome, write_http_diagnostic
from .fake_senders import send_bulk_via_console
from .ses_sender import SesBulkSender, build_ses_client
from .stream_parser import LineEvent, RecordParser
from .stdin_runtime import (
    configure_logging,
    load_settings_from_env,
    pump_stream,
    run_batch_counter,
    run_sender_forever,
)

__all__ = [
    "LineEvent",
    "RecordParser",
    "SesBulkSender",
    "build_ses_client",
    "configure_logging",
    "handle_dispatch_outcome",
    "load_settings_from_env",
    "pump_stream",
    "run_batch_counter",
    "run_sender_forever",
    "send_bulk_via_console",
    "write_http_diagnostic",
]
