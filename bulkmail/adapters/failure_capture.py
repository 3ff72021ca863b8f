"""Failure capture sink for dispatch outcomes.

Mental model refresher:
- Only a service error (SES answered with an HTTP-level error) is written to
  disk, as a raw `.http` file for offline debugging.
- Timeouts, transport failures and unknown errors are logged and dropped.
- Nothing here raises: a failed capture is reported through the log and the
  stream keeps flowing.
"""

from __future__ import annotations

from datetime import UTC, datetime
import logging
import os
from pathlib import Path
import time
from typing import Any, Mapping

from ..domain.records import RequestKind
from ..types import (
    OUTCOME_SERVICE_ERROR,
    OUTCOME_SUCCESS,
    OUTCOME_TIMEOUT,
    OUTCOME_TRANSPORT_FAILURE,
    DispatchOutcome,
)

logger = logging.getLogger(__name__)

EMPTY_BODY_MARKER = "Empty body.\n"


def diagnostic_file_name(kind_index: int, now: datetime | None = None) -> str:
    """Build `ses_<YYYYmmddHHMMSS.mmm>_<kind index>.http` from a UTC timestamp."""
    moment = (now or datetime.now(tz=UTC)).astimezone(UTC)
    stamp = f"{moment:%Y%m%d%H%M%S}.{moment.microsecond // 1000:03d}"
    return f"ses_{stamp}_{kind_index}.http"


def render_http_capture(http: Mapping[str, Any]) -> str:
    lines = [f"HTTP/1.1 {http.get('status_code')}\n"]
    for name, value in http.get("headers") or []:
        lines.append(f"{name}: {value}\n")
    lines.append("\n")

    body = http.get("body")
    if body:
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        lines.append(str(body))
    else:
        lines.append(EMPTY_BODY_MARKER)
    return "".join(lines)


def write_http_diagnostic(
    http: Mapping[str, Any],
    *,
    output_dir: str | os.PathLike[str],
    kind_index: int,
    now: datetime | None = None,
    started_at: float | None = None,
) -> tuple[Path, int] | None:
    """Write one raw HTTP failure response and report the bytes written.

    Returns `(path, bytes_written)`, or `None` when the file could not be
    written.
    """
    full_path = Path(output_dir) / diagnostic_file_name(kind_index, now)
    content = render_http_capture(http).encode("utf-8")

    try:
        with full_path.open("wb") as file_handle:
            bytes_written = file_handle.write(content)
    except OSError as exc:
        logger.error("ERROR: failed to write to file %s: %s", full_path, exc)
        return None

    elapsed = time.monotonic() - started_at if started_at is not None else 0.0
    logger.info("%d bytes written to %s (%.2f seconds)", bytes_written, full_path, elapsed)
    return full_path, bytes_written


def handle_dispatch_outcome(
    kind: RequestKind,
    outcome: DispatchOutcome,
    *,
    output_dir: str | os.PathLike[str],
    started_at: float | None = None,
) -> Path | None:
    """Log a dispatch outcome; capture service errors to a diagnostic file."""
    status = outcome.get("status")

    if status == OUTCOME_SUCCESS:
        for index, destination_status in enumerate(outcome.get("destination_statuses") or []):
            logger.info(
                "[%s] destination #%d => status: %s", kind.name, index, destination_status
            )
        return None

    if status == OUTCOME_SERVICE_ERROR:
        logger.error("ERROR: service error for %s batch; %s", kind.name, outcome.get("error"))
        http = outcome.get("http")
        if not isinstance(http, Mapping):
            logger.error("ERROR: service error carried no raw HTTP response")
            return None
        written = write_http_diagnostic(
            http,
            output_dir=output_dir,
            kind_index=kind.index,
            started_at=started_at,
        )
        return written[0] if written else None

    if status == OUTCOME_TIMEOUT:
        logger.error("ERROR: connection timed out; %s", outcome.get("error"))
    elif status == OUTCOME_TRANSPORT_FAILURE:
        logger.error("ERROR: dispatch failure; %s", outcome.get("error"))
    else:
        logger.error("ERROR: unexpected error; %s", outcome.get("error"))
    return None
