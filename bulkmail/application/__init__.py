"""Application layer: flush-cycle orchestration across request kinds."""

from .flush import flush_batches, report_batch_counts

__all__ = [
    "flush_batches",
    "report_batch_counts",
]
