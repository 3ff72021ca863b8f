"""Byte-at-a-time decoder for the `K,F1,F2,F3,F4\\n` request stream.

Mental model refresher:
- This is an adapter/edge module.
- It translates raw stdin bytes into domain `Record`s and drops them into the
  batch store it was given.
- It reports line boundaries but never flushes anything itself; the runtime
  loop decides what a completed line triggers.

Wire grammar:
- a record is one kind byte (`1` or `2`) followed by four data fields
- `,` and `\\n` are both field delimiters; there is no escaping
- the fourth delimiter after the kind byte closes the record
- every `\\n` is reported as one completed line
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator

from ..domain.records import MAX_FIELD_LEN, MAX_FIELDS, BatchStore, Record, RequestKind
from ..errors import FieldTooLongError, InvalidKindTokenError

COMMA = ord(",")
NEWLINE = ord("\n")


class LineEvent(Enum):
    CONTINUES = "continues"
    COMPLETE = "complete"


class RecordParser:
    """Finite-state decoder that fills a `BatchStore` one byte at a time.

    `field_index` counts delimiters seen since the record began: `0` means the
    parser is waiting for the kind byte, `1..4` select the data field being
    written.
    """

    def __init__(self, store: BatchStore) -> None:
        self.store = store
        self.current_kind: RequestKind | None = None
        self.field_index = 0
        self._field = bytearray()
        self._fields: list[bytes] = []

    @property
    def field_length(self) -> int:
        return len(self._field)

    def reset(self) -> None:
        """Drop any half-decoded record; batches are left untouched."""
        self.current_kind = None
        self.field_index = 0
        self._field.clear()
        self._fields = []

    def consume(self, byte: int) -> LineEvent:
        if byte == COMMA or byte == NEWLINE:
            self._close_field()
            return LineEvent.COMPLETE if byte == NEWLINE else LineEvent.CONTINUES

        if self.field_index == 0:
            if self.current_kind is not None:
                raise InvalidKindTokenError(
                    f"kind token is longer than one byte (extra byte {bytes([byte])!r})"
                )
            self.current_kind = RequestKind.from_token(byte)
            return LineEvent.CONTINUES

        if len(self._field) >= MAX_FIELD_LEN:
            raise FieldTooLongError(
                f"field {self.field_index} exceeds {MAX_FIELD_LEN} bytes"
            )
        self._field.append(byte)
        return LineEvent.CONTINUES

    def feed(self, chunk: bytes) -> Iterator[None]:
        """Consume a chunk, yielding once for every completed line.

        The caller runs its flush inside the loop body, so no byte after a
        newline is decoded until that flush has returned.
        """
        for byte in chunk:
            if self.consume(byte) is LineEvent.COMPLETE:
                yield None

    def _close_field(self) -> None:
        if self.field_index == 0:
            if self.current_kind is None:
                raise InvalidKindTokenError("record starts with a delimiter, kind token missing")
        else:
            self._fields.append(bytes(self._field))

        self.field_index += 1
        self._field.clear()

        if self.field_index > MAX_FIELDS:
            self._finalize_record()

    def _finalize_record(self) -> None:
        if self.current_kind is None:
            raise InvalidKindTokenError("record closed without a kind token")
        record = Record.from_fields(self.current_kind, self._fields)
        self.reset()
        self.store.add(record)
