"""Domain layer: request kinds, bounded batches and template data rules."""

from .records import (
    MAX_FIELD_LEN,
    MAX_FIELDS,
    MAX_ROWS,
    Batch,
    BatchStore,
    Record,
    RequestKind,
)
from .templates import DEFAULT_TEMPLATE_DATA, TEMPLATE_NAMES, build_bulk_request, template_data_for

__all__ = [
    "Batch",
    "BatchStore",
    "DEFAULT_TEMPLATE_DATA",
    "MAX_FIELD_LEN",
    "MAX_FIELDS",
    "MAX_ROWS",
    "Record",
    "RequestKind",
    "TEMPLATE_NAMES",
    "build_bulk_request",
    "template_data_for",
]
