"""Parse-time errors raised by the record parser and batch store."""


class BulkmailError(Exception):
    """Base error for this package."""


class ParseError(BulkmailError, ValueError):
    """Raised when the input byte stream cannot be decoded into records."""


class InvalidKindTokenError(ParseError):
    """Raised when the kind-token position holds anything but `1` or `2`."""


class FieldTooLongError(ParseError):
    """Raised when a data field grows past the per-field byte limit."""


class BatchCapacityExceededError(ParseError):
    """Raised when a record is finalized into a batch that is already full."""
