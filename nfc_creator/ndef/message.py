"""NDEF message assembly and framing-level decoding."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from nfc_creator.ndef.errors import DecodeError, EncodingError
from nfc_creator.ndef.record import MB, ME, Record


class Message:
    """Ordered list of records serialized with MB/ME framing.

    A message may be empty while it is being built or when a tag holds no
    records, but an empty message can not be serialized.
    """

    __slots__ = ("_records",)

    def __init__(self, records: Iterable[Record] = ()) -> None:
        self._records: list[Record] = []
        for record in records:
            self.append(record)

    def append(self, record: Record) -> Message:
        if not isinstance(record, Record):
            raise EncodingError(f"expected a Record, got {type(record).__name__}")
        self._records.append(record)
        return self

    @property
    def records(self) -> tuple[Record, ...]:
        return tuple(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, index: int) -> Record:
        return self._records[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"Message({self._records!r})"

    def to_bytes(self) -> bytes:
        """Serialize: MB on the first record, ME on the last, neither in between."""
        if not self._records:
            raise EncodingError("an NDEF message needs at least one record")
        last = len(self._records) - 1
        return b"".join(
            record.encode(mb=index == 0, me=index == last)
            for index, record in enumerate(self._records)
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Message:
        """Split serialized NDEF bytes into records.

        Only framing is checked; payloads are kept verbatim. An empty buffer
        yields an empty message.
        """
        message = cls()
        offset = 0
        while offset < len(data):
            record, flags, offset = Record.decode(data, offset)
            first = not message._records
            if first != bool(flags & MB):
                raise DecodeError("MB flag must be set on the first record only")
            message._records.append(record)
            if flags & ME:
                break
        else:
            if message._records:
                raise DecodeError("message ended without an ME flag")
        return message
