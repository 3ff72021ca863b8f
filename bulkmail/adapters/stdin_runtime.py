"""Stdin transport loops for the sending and counting variants.

Mental model refresher:
- This module is transport glue to the byte stream on stdin.
- It reads chunks, feeds the record parser and runs a flush after every
  completed line, synchronously: no byte is decoded while a send is in flight.
- Batch and template rules live in domain/application layers; exit codes and
  environment configuration live here.
"""

from __future__ import annotations

from functools import partial
import logging
import os
import sys
from io import BufferedIOBase

from ..application.flush import flush_batches, report_batch_counts
from ..domain.records import BatchStore
from ..errors import ParseError
from ..types import LineCompleteFn, SendBulkFn, Settings
from .fake_senders import send_bulk_via_console
from .ses_sender import SesBulkSender, build_ses_client
from .stream_parser import RecordParser

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192
LOG_FORMAT = "%(asctime)s [SES] %(levelname)s %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def configure_logging(level: str | None = None) -> None:
    """Send log records to stderr; stdout stays free for console output."""
    level_name = (level or os.getenv("MF_LOG_LEVEL", "INFO")).upper()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level_name, logging.INFO))
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def load_settings_from_env() -> Settings:
    """Read sender configuration; unset values fall back to local defaults."""
    return {
        "debug": _env_bool("MF_DEBUG", default=False),
        "configuration_set": os.getenv("MF_SES_CONFIG_SET", "default"),
        "source": os.getenv("MF_SES_SOURCE", "noreply@localhost"),
        "output_dir": os.getenv("MF_SES_OUTPUT_PATH", "./output"),
        "reply_to": _csv_from_env("MF_SES_REPLY_TO"),
        "endpoint_url": _optional_env("MF_SES_ENDPOINT_URL"),
        "region": _optional_env("AWS_REGION") or _optional_env("AWS_DEFAULT_REGION"),
        "connect_timeout_seconds": _env_seconds("MF_SES_CONNECT_TIMEOUT_SECONDS", "10"),
        "read_timeout_seconds": _env_seconds("MF_SES_READ_TIMEOUT_SECONDS", "30"),
    }


def build_sender(settings: Settings) -> SendBulkFn:
    """Pick the console sender in debug mode, SES otherwise."""
    if settings["debug"]:
        return partial(
            send_bulk_via_console,
            configuration_set=settings["configuration_set"],
            source=settings["source"],
        )
    return SesBulkSender(
        build_ses_client(settings),
        configuration_set=settings["configuration_set"],
        source=settings["source"],
        reply_to=settings["reply_to"],
    )


def pump_stream(
    stream: BufferedIOBase,
    parser: RecordParser,
    on_line_complete: LineCompleteFn,
    *,
    chunk_size: int = CHUNK_SIZE,
) -> None:
    """Decode `stream` until it reports end of input.

    `read1` returns whatever bytes are already available, so a line written
    to a pipe that stays open is decoded and flushed straight away.
    Parse errors and read errors propagate to the caller.
    """
    while True:
        chunk = stream.read1(chunk_size)
        if not chunk:
            return
        for _ in parser.feed(chunk):
            on_line_complete()


def run_sender_forever(
    stream: BufferedIOBase | None = None,
    settings: Settings | None = None,
    sender: SendBulkFn | None = None,
) -> int:
    """Run the sending variant; any return means the process should exit.

    End of input is fatal here: the sender is expected to sit behind a
    producer that never closes its end of the pipe.
    """
    try:
        settings = settings or load_settings_from_env()
    except RuntimeError as exc:
        logger.error("ERROR: invalid configuration: %s", exc)
        return 1

    logger.info(
        "configured; debug=%s config_set=%s source=%s output_path=%s",
        settings["debug"],
        settings["configuration_set"],
        settings["source"],
        settings["output_dir"],
    )

    output_dir = settings["output_dir"]
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as exc:
        logger.error("ERROR: failed to create output directory %s: %s", output_dir, exc)
        return 1

    send_bulk = sender or build_sender(settings)
    store = BatchStore()
    parser = RecordParser(store)

    def flush() -> None:
        flush_batches(store, send_bulk, output_dir=output_dir)

    try:
        pump_stream(stream or sys.stdin.buffer, parser, flush)
    except KeyboardInterrupt:
        logger.info("received keyboard interrupt")
        return 0
    except ParseError as exc:
        logger.error("ERROR: failed to parse input: %s", exc)
        return 1
    except OSError as exc:
        logger.error("ERROR: failed to read from stdin: %s", exc)
        return 1

    logger.error("ERROR: end of input stream")
    return 1


def run_batch_counter(stream: BufferedIOBase | None = None) -> int:
    """Run the counting variant: report batch sizes, stop cleanly at end of input."""
    store = BatchStore()
    parser = RecordParser(store)

    try:
        pump_stream(stream or sys.stdin.buffer, parser, partial(report_batch_counts, store))
    except ParseError as exc:
        logger.error("Failed to parse input: %s", exc)
        return 1
    except OSError as exc:
        logger.error("Failed to read from stdin: %s", exc)
        return 1
    return 0


def _optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _csv_from_env(name: str) -> list[str]:
    raw = _optional_env(name)
    if raw is None:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_seconds(name: str, default: str) -> float:
    raw = os.getenv(name, default)
    try:
        seconds = float(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid number of seconds for {name}: {raw!r}") from exc
    if seconds <= 0:
        raise RuntimeError(f"{name} must be > 0")
    return seconds


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    raise RuntimeError(f"Invalid boolean value for {name}: {raw!r}")
