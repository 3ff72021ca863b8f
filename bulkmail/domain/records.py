"""Request kinds, decoded records and their fixed-capacity batches.

Mental model refresher:
- Domain modules hold the rules about what a record is and how many of them
  may wait for one dispatch.
- They do not read bytes, talk to SES or write files.
- A batch is bounded: it refuses the record that would overflow it instead of
  overwriting older entries.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from ..errors import BatchCapacityExceededError, InvalidKindTokenError

MAX_FIELDS = 4
MAX_ROWS = 10
MAX_FIELD_LEN = 254


class RequestKind(Enum):
    ACTIVATION = 0
    PASSWORD_RECOVERY = 1

    @property
    def index(self) -> int:
        return self.value

    @property
    def token(self) -> int:
        return _TOKENS[self]

    @classmethod
    def from_token(cls, byte: int) -> RequestKind:
        """Map a wire kind byte to its request kind."""
        for kind, token in _TOKENS.items():
            if token == byte:
                return kind
        raise InvalidKindTokenError(f"unknown identifier {bytes([byte])!r}")


_TOKENS = {
    RequestKind.ACTIVATION: ord("1"),
    RequestKind.PASSWORD_RECOVERY: ord("2"),
}


@dataclass(frozen=True)
class Record:
    """One decoded line: always four field slots, whatever the kind uses."""

    kind: RequestKind
    to_address: bytes
    login: bytes
    secret: bytes
    code: bytes

    @classmethod
    def from_fields(cls, kind: RequestKind, fields: list[bytes]) -> Record:
        if len(fields) != MAX_FIELDS:
            raise ValueError(f"record needs {MAX_FIELDS} fields, got {len(fields)}")
        return cls(kind, fields[0], fields[1], fields[2], fields[3])


class Batch:
    """Insertion-ordered records of one kind awaiting the next flush."""

    def __init__(self, kind: RequestKind, capacity: int = MAX_ROWS) -> None:
        self.kind = kind
        self.capacity = capacity
        self._records: list[Record] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def is_full(self) -> bool:
        return len(self._records) >= self.capacity

    def append(self, record: Record) -> None:
        if record.kind is not self.kind:
            raise ValueError(f"{record.kind.name} record cannot join {self.kind.name} batch")
        if self.is_full():
            raise BatchCapacityExceededError(
                f"{self.kind.name} batch already holds {self.capacity} records"
            )
        self._records.append(record)

    def drain(self) -> list[Record]:
        """Return the pending records and leave the batch empty."""
        records = self._records
        self._records = []
        return records

    def clear(self) -> None:
        self._records = []


class BatchStore:
    """One batch per request kind, iterated in kind-index order."""

    def __init__(self, capacity: int = MAX_ROWS) -> None:
        self._batches = {kind: Batch(kind, capacity) for kind in RequestKind}

    def __getitem__(self, kind: RequestKind) -> Batch:
        return self._batches[kind]

    def __iter__(self) -> Iterator[Batch]:
        return iter(self._batches.values())

    def add(self, record: Record) -> None:
        self._batches[record.kind].append(record)

    def counts(self) -> dict[RequestKind, int]:
        return {batch.kind: len(batch) for batch in self}

    def is_empty(self) -> bool:
        return all(len(batch) == 0 for batch in self)
