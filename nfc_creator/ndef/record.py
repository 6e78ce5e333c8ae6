"""NDEF record value and its single-record wire framing."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum

from nfc_creator.ndef.errors import DecodeError, EncodingError

MB = 0b10000000
ME = 0b01000000
CF = 0b00100000
SR = 0b00010000
IL = 0b00001000
TNF_MASK = 0b00000111

MAX_TYPE_LENGTH = 0xFF
MAX_ID_LENGTH = 0xFF
MAX_PAYLOAD_LENGTH = 0xFFFFFFFF


class TNF(IntEnum):
    """Type Name Format values of the NDEF header byte."""

    EMPTY = 0x00
    WELL_KNOWN = 0x01
    MIME = 0x02
    ABSOLUTE_URI = 0x03
    EXTERNAL = 0x04
    UNKNOWN = 0x05
    UNCHANGED = 0x06


# TNF values whose TYPE field must be empty.
_TYPELESS = frozenset({TNF.EMPTY, TNF.UNKNOWN, TNF.UNCHANGED})


@dataclass(frozen=True, slots=True)
class Record:
    """One NDEF record: type name format, type, optional id and payload."""

    tnf: TNF
    type: bytes = b""
    payload: bytes = b""
    id: bytes = b""

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "tnf", TNF(self.tnf))
        except ValueError as exc:
            raise EncodingError(f"TNF value {self.tnf!r} is not between 0 and 6") from exc
        for name in ("type", "payload", "id"):
            value = getattr(self, name)
            if not isinstance(value, bytes | bytearray):
                raise EncodingError(f"record {name} must be bytes, not {type(value).__name__}")
            object.__setattr__(self, name, bytes(value))

        if self.tnf in _TYPELESS and self.type:
            raise EncodingError(f"TYPE must be empty for TNF {self.tnf.name}")
        if self.tnf not in _TYPELESS and not self.type:
            raise EncodingError(f"TYPE is required for TNF {self.tnf.name}")
        if self.tnf == TNF.EMPTY and (self.id or self.payload):
            raise EncodingError("an empty record can not carry an id or payload")
        if len(self.type) > MAX_TYPE_LENGTH:
            raise EncodingError(f"TYPE can not be more than {MAX_TYPE_LENGTH} octets")
        if len(self.id) > MAX_ID_LENGTH:
            raise EncodingError(f"ID can not be more than {MAX_ID_LENGTH} octets")
        if len(self.payload) > MAX_PAYLOAD_LENGTH:
            raise EncodingError(f"payload can not be more than {MAX_PAYLOAD_LENGTH} octets")

    @classmethod
    def empty(cls) -> Record:
        return cls(TNF.EMPTY)

    @property
    def type_name(self) -> str:
        """The TYPE field as text, e.g. ``U`` or ``image/png``."""
        return self.type.decode("ascii", errors="replace")

    def encode(self, *, mb: bool = False, me: bool = False) -> bytes:
        """Serialize the record with the given message-begin/end flags.

        The short form is used whenever the payload fits in one length octet.
        The chunk flag is never set.
        """
        short = len(self.payload) <= 0xFF
        header = (
            (MB if mb else 0)
            | (ME if me else 0)
            | (SR if short else 0)
            | (IL if self.id else 0)
            | int(self.tnf)
        )
        struct_format = ">BB" + ("B" if short else "L") + ("B" if self.id else "")
        fields = (header, len(self.type), len(self.payload)) + ((len(self.id),) if self.id else ())
        return struct.pack(struct_format, *fields) + self.type + self.id + self.payload

    @classmethod
    def decode(cls, data: bytes, offset: int = 0) -> tuple[Record, int, int]:
        """Decode one record starting at ``offset``.

        Returns ``(record, header_flags, next_offset)``; ``header_flags`` keeps
        the MB/ME bits so the caller can validate message framing.
        """
        if offset >= len(data):
            raise DecodeError("buffer underflow at reading record header")
        header = data[offset]
        tnf_value = header & TNF_MASK
        if header & CF:
            raise DecodeError("chunked records are not supported")
        if tnf_value == 7:
            raise DecodeError("TNF field value must be between 0 and 6")

        struct_format = ">B" + ("B" if header & SR else "L") + ("B" if header & IL else "")
        size = struct.calcsize(struct_format)
        start = offset + 1
        if start + size > len(data):
            raise DecodeError("buffer underflow at reading length fields")
        lengths = struct.unpack_from(struct_format, data, start)
        type_length, payload_length = lengths[0], lengths[1]
        id_length = lengths[2] if header & IL else 0

        pos = start + size
        end = pos + type_length + id_length + payload_length
        if end > len(data):
            raise DecodeError("buffer underflow at reading record body")
        record_type = data[pos : pos + type_length]
        pos += type_length
        record_id = data[pos : pos + id_length]
        pos += id_length
        payload = data[pos:end]

        try:
            record = cls(TNF(tnf_value), bytes(record_type), bytes(payload), bytes(record_id))
        except EncodingError as exc:
            raise DecodeError(str(exc)) from exc
        return record, header & (MB | ME), end
