"""Tag error taxonomy and translation of platform exceptions."""

from __future__ import annotations

from nfc_creator.ndef.errors import DecodeError
from nfc_creator.tags.platform import (
    KERR_DISCONNECTED,
    KERR_GENERAL,
    KERR_OVERFLOW,
    AuthFailed,
    ContactlessError,
    IoFailed,
)


class TagError(Exception):
    """Base class for failures while talking to a tag."""


class ConfigError(TagError):
    """Operation does not match the session mode or state."""


class TransportError(TagError):
    """I/O with the tag failed."""


class TagOverflowError(TransportError):
    """The tag does not have enough space for the data."""


class DisconnectedError(TransportError):
    """The tag left the field during the operation."""


class FormatError(TagError):
    """Tag contents are empty, malformed or unsupported."""


class AuthError(TagError):
    """Raw access was refused for the supplied key."""


def translate_platform_error(exc: BaseException) -> TagError:
    """Map a platform exception onto the tag error taxonomy."""
    if isinstance(exc, TagError):
        return exc
    if isinstance(exc, AuthFailed):
        return AuthError(f"Authentication error: {exc}")
    if isinstance(exc, DecodeError):
        return FormatError(f"Unsupported tag contents: {exc}")
    if isinstance(exc, ContactlessError):
        if exc.code == KERR_OVERFLOW:
            return TagOverflowError(f"-9: Not enough space on the tag / {exc}")
        if exc.code == KERR_GENERAL:
            return FormatError(f"-2: General error / {exc}")
        if exc.code == KERR_DISCONNECTED:
            return DisconnectedError(f"-36: Communication problem / {exc}")
        return TransportError(f"ContactlessError: {exc}")
    if isinstance(exc, OSError):
        if exc.errno == KERR_DISCONNECTED:
            return DisconnectedError(f"-36: Communication problem / {exc.strerror or exc}")
        return TransportError(f"IOError: {exc}")
    if isinstance(exc, IoFailed):
        return TransportError(f"Connection error: {exc}")
    return TransportError(f"{type(exc).__name__}: {exc}")
