"""NFC Forum URI RTD abbreviation table.

Index 0 means "no abbreviation". The order is part of the wire format:
encoders pick the lowest index whose prefix matches, so ``http://www.``
(1) wins over ``http://`` (3) and ``urn:`` (19) wins over ``urn:epc:id:``.
"""

from __future__ import annotations

from nfc_creator.ndef.errors import DecodeError

URI_PREFIXES: tuple[str, ...] = (
    "",
    "http://www.",
    "https://www.",
    "http://",
    "https://",
    "tel:",
    "mailto:",
    "ftp://anonymous:anonymous@",
    "ftp://ftp.",
    "ftps://",
    "sftp://",
    "smb://",
    "nfs://",
    "ftp://",
    "dav://",
    "news:",
    "telnet://",
    "imap:",
    "rtsp://",
    "urn:",
    "pop:",
    "sip:",
    "sips:",
    "tftp:",
    "btspp://",
    "btl2cap://",
    "btgoep://",
    "tcpobex://",
    "irdaobex://",
    "file://",
    "urn:epc:id:",
    "urn:epc:tag:",
    "urn:epc:pat:",
    "urn:epc:raw:",
    "urn:epc:",
    "urn:nfc:",
)


def abbreviate(uri: str) -> tuple[int, str]:
    """Return ``(index, remainder)`` for the first table entry ``uri`` starts with."""
    for index, prefix in enumerate(URI_PREFIXES):
        if index and uri.startswith(prefix):
            return index, uri[len(prefix) :]
    return 0, uri


def expand(index: int, remainder: str) -> str:
    """Inverse of :func:`abbreviate`. Both ``ftp://`` indices are accepted."""
    if not 0 <= index < len(URI_PREFIXES):
        raise DecodeError(f"URI prefix code {index:#04x} is not defined")
    return URI_PREFIXES[index] + remainder
