"""NDEF codec errors."""

from __future__ import annotations


class NdefError(ValueError):
    """Base class for NDEF encode/decode failures."""


class EncodingError(NdefError):
    """Raised when caller input cannot be turned into a valid record."""


class DecodeError(NdefError):
    """Raised when bytes read from a tag are not valid NDEF framing."""
