"""Interfaces of the contactless platform the tag layer drives.

The platform delivers target arrivals on its own thread and opens
connections by URL. Anything satisfying these protocols can be plugged in:
a real reader binding or the fakes used in the test-suite.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Protocol

NDEF_TAG = "NDEF_TAG"

# Symbian error codes reported by the contactless stack.
KERR_DISCONNECTED = -36
KERR_OVERFLOW = -9
KERR_GENERAL = -2


class ContactlessError(Exception):
    """Error raised by the contactless stack, carrying its native code."""

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.code = code


class AuthFailed(Exception):
    """Raw block access was refused for the supplied key."""


class IoFailed(Exception):
    """Raw block read or write failed at transport level."""


class TargetProperties(Protocol):
    """One candidate target reported on arrival."""

    @property
    def uid(self) -> str: ...

    @property
    def url(self) -> str | None: ...

    def has_target_type(self, target_type: str) -> bool: ...

    def connection_names(self) -> Sequence[str]: ...

    def connection_url(self, name: str) -> str | None: ...


class NdefConnection(Protocol):
    """Blocking NDEF connection exchanging serialized messages."""

    def read_ndef(self) -> bytes | None: ...

    def write_ndef(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class RawBlockConnection(Protocol):
    """Blocking, block-oriented connection (Mifare Classic style)."""

    @property
    def sector_count(self) -> int: ...

    @property
    def block_count(self) -> int: ...

    @property
    def size(self) -> int: ...

    def read(
        self, key: bytes, dst: bytearray, start_block: int, start_byte: int, length: int
    ) -> int: ...

    def write(self, key: bytes, src: bytes, start_block: int) -> None: ...

    def close(self) -> None: ...


class Connector(Protocol):
    def open(self, url: str) -> Any: ...


TargetListener = Callable[[Sequence[TargetProperties]], None]


class DiscoveryPlatform(Protocol):
    """Registration point for target-arrival notifications."""

    def supported_target_types(self) -> Sequence[str]: ...

    def add_target_listener(self, listener: TargetListener, target_type: str) -> None: ...

    def remove_target_listener(self, listener: TargetListener, target_type: str) -> None: ...
