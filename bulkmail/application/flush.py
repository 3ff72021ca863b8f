"""Application orchestration for one flush cycle.

Mental model refresher:
- Application layer coordinates the use-case across both request kinds.
- In this project it:
  1) drains each non-empty batch, activation first
  2) builds one bulk request per drained batch and calls the sender once
  3) hands the outcome to the failure capture sink
- Batches are emptied before the sender runs, so a failed send is never
  retried or re-queued.
"""

from __future__ import annotations

import logging
import os
import time

from ..adapters.failure_capture import handle_dispatch_outcome
from ..domain.records import BatchStore
from ..domain.templates import build_bulk_request
from ..types import OUTCOME_UNKNOWN, DispatchOutcome, EmitFn, FlushResult, SendBulkFn

logger = logging.getLogger(__name__)


def flush_batches(
    store: BatchStore,
    send_bulk: SendBulkFn,
    *,
    output_dir: str | os.PathLike[str],
) -> list[FlushResult]:
    """Dispatch every non-empty batch once and clear it, whatever the outcome."""
    results: list[FlushResult] = []
    for batch in store:
        records = batch.drain()
        if not records:
            continue

        request = build_bulk_request(batch.kind, records)
        started_at = time.monotonic()
        try:
            outcome: DispatchOutcome = send_bulk(request)
        except Exception as exc:
            outcome = {"status": OUTCOME_UNKNOWN, "error": f"{type(exc).__name__}: {exc}"}

        diagnostic_path = handle_dispatch_outcome(
            batch.kind,
            outcome,
            output_dir=output_dir,
            started_at=started_at,
        )
        results.append(
            {
                "kind": batch.kind,
                "destinations": len(records),
                "outcome": outcome,
                "diagnostic_path": diagnostic_path,
            }
        )
    return results


def report_batch_counts(store: BatchStore, emit: EmitFn | None = None) -> dict[int, int]:
    """Counting sink: report each non-empty batch size instead of sending it."""
    emit = emit or print
    reported: dict[int, int] = {}
    for batch in store:
        count = len(batch)
        if count == 0:
            continue
        emit(f"Batch {batch.kind.index + 1} has {count} items.")
        reported[batch.kind.index + 1] = count
        batch.clear()
    return reported
