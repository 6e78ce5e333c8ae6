"""
Record constructors for the NDEF types the creator writes.

Supports:
- URI records with NFC Forum prefix abbreviation
- Text records (UTF-8, IANA language tag)
- Smart Poster records wrapping URI, title, action and icon
- MIME records for images and vCalendar entries
- Geo links and NFC Forum external types

Every function here is pure: inputs are validated and a ``Record`` is
returned, or ``EncodingError`` is raised.
"""

from __future__ import annotations

import io
import math
from datetime import UTC, datetime
from enum import IntEnum

from PIL import Image, UnidentifiedImageError

from nfc_creator.core.logging import get_logger
from nfc_creator.ndef.errors import DecodeError, EncodingError
from nfc_creator.ndef.message import Message
from nfc_creator.ndef.record import TNF, Record
from nfc_creator.ndef.uri_prefixes import abbreviate, expand

logger = get_logger(__name__)

MAX_LANGUAGE_LENGTH = 0x3F
TEXT_UTF16_FLAG = 0x80

URI_TYPE = b"U"
TEXT_TYPE = b"T"
SMART_POSTER_TYPE = b"Sp"
ACTION_TYPE = b"act"
VCALENDAR_MIME = "text/x-vCalendar"

IMAGE_MIME_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
}

# Short, well-known "act" record without MB/ME; the action code is appended.
_ACTION_RECORD_PREFIX = bytes([0x11, 0x03, 0x01]) + ACTION_TYPE


class Action(IntEnum):
    """Smart Poster recommended action."""

    EXECUTE = 0
    SAVE = 1
    EDIT = 2


class GeoMode(IntEnum):
    """How a coordinate pair is turned into a URI."""

    GEO_URI = 0
    NOKIA_MAPS = 1
    NFC_INTERACTOR = 2


# ==============================================================================
# URI
# ==============================================================================


def uri_record(uri: str) -> Record:
    """Well-known ``U`` record; the longest table prefix at the lowest index is abbreviated."""
    if not isinstance(uri, str):
        raise EncodingError(f"URI must be str, not {type(uri).__name__}")
    if not uri:
        raise EncodingError("URI must not be empty")
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in uri):
        raise EncodingError("URI must not contain control characters")

    index, remainder = abbreviate(uri)
    return Record(TNF.WELL_KNOWN, URI_TYPE, bytes([index]) + remainder.encode("utf-8"))


def decode_uri(payload: bytes) -> str:
    """Expand a URI record payload back to the full URI."""
    if not payload:
        raise DecodeError("URI payload must hold at least the prefix code")
    try:
        remainder = payload[1:].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"URI payload is not valid UTF-8: {exc}") from exc
    return expand(payload[0], remainder)


# ==============================================================================
# Text
# ==============================================================================


def text_record(text: str, language: str = "en") -> Record:
    """Well-known ``T`` record: status byte, ASCII language tag, UTF-8 text."""
    if not isinstance(text, str):
        raise EncodingError(f"text must be str, not {type(text).__name__}")
    try:
        lang = language.encode("ascii")
    except (AttributeError, UnicodeEncodeError) as exc:
        raise EncodingError(f"language must be an ASCII tag, got {language!r}") from exc
    if len(lang) > MAX_LANGUAGE_LENGTH:
        raise EncodingError(
            f"language tag can not be more than {MAX_LANGUAGE_LENGTH} octets (got {len(lang)})"
        )

    status = len(lang) & MAX_LANGUAGE_LENGTH
    return Record(TNF.WELL_KNOWN, TEXT_TYPE, bytes([status]) + lang + text.encode("utf-8"))


def decode_text(payload: bytes) -> tuple[str, str]:
    """Return ``(text, language)`` from a Text record payload.

    UTF-16 payloads written by other encoders are accepted as well.
    """
    if not payload:
        raise DecodeError("Text payload must hold at least the status byte")
    status = payload[0]
    lang_length = status & MAX_LANGUAGE_LENGTH
    if 1 + lang_length > len(payload):
        raise DecodeError("Text payload is shorter than its language tag")
    body = payload[1 + lang_length :]
    try:
        language = payload[1 : 1 + lang_length].decode("ascii")
        if status & TEXT_UTF16_FLAG:
            encoding = "utf-16" if body[:2] in (b"\xff\xfe", b"\xfe\xff") else "utf-16-be"
            text = body.decode(encoding)
        else:
            text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"Text payload can not be decoded: {exc}") from exc
    return text, language


# ==============================================================================
# Action / image / external / MIME
# ==============================================================================


def action_record(action: Action | int) -> Record:
    """``act`` child record for Smart Posters.

    Built from the fixed 7-byte short-record form ``11 03 01 'act' <code>``
    so the child serializes exactly like tags written by older encoders.
    """
    try:
        code = Action(action)
    except ValueError as exc:
        raise EncodingError(f"unknown Smart Poster action {action!r}") from exc
    record, _, _ = Record.decode(_ACTION_RECORD_PREFIX + bytes([code]))
    return record


def mime_record(mime_type: str, payload: bytes) -> Record:
    if not mime_type:
        raise EncodingError("MIME type must not be empty")
    try:
        record_type = mime_type.encode("ascii")
    except UnicodeEncodeError as exc:
        raise EncodingError(f"MIME type must be ASCII, got {mime_type!r}") from exc
    return Record(TNF.MIME, record_type, payload)


def image_mime_type(filename: str, data: bytes | None = None) -> str:
    """Pick the MIME type from the file extension.

    Unrecognized extensions fall back to sniffing ``data`` with Pillow; when
    that fails too the image is refused.
    """
    _, dot, extension = filename.rpartition(".")
    mime_type = IMAGE_MIME_TYPES.get(extension.lower()) if dot else None
    if mime_type is not None:
        return mime_type

    logger.warning("image_extension_unrecognized", filename=filename)
    if data:
        try:
            with Image.open(io.BytesIO(data)) as image:
                sniffed = Image.MIME.get(image.format or "")
        except (UnidentifiedImageError, OSError):
            sniffed = None
        if sniffed and sniffed.startswith("image/"):
            return sniffed
    raise EncodingError(f"Unrecognized image file type: {filename!r}")


def image_record(data: bytes, filename: str) -> Record:
    """MIME record holding the image bytes verbatim."""
    if not data:
        raise EncodingError(f"image {filename!r} is missing or empty")
    return mime_record(image_mime_type(filename, data), data)


def external_record(type_uri: str, payload: bytes) -> Record:
    """NFC Forum external type record.

    The type is written exactly as given, with or without ``urn:nfc:ext:``.
    """
    if not type_uri:
        raise EncodingError("external type must not be empty")
    try:
        record_type = type_uri.encode("ascii")
    except UnicodeEncodeError as exc:
        raise EncodingError(f"external type must be ASCII, got {type_uri!r}") from exc
    return Record(TNF.EXTERNAL, record_type, payload)


# ==============================================================================
# Geo
# ==============================================================================


def _coordinate(value: float, limit: float, name: str) -> str:
    value = float(value)
    if not math.isfinite(value) or abs(value) > limit:
        raise EncodingError(f"{name} must be within +/-{limit:g} degrees, got {value!r}")
    text = repr(value)
    if "e" in text:
        # geo: URIs have no exponent notation
        text = f"{value:.15f}".rstrip("0")
        if text.endswith("."):
            text += "0"
    return text


def geo_uri(latitude: float, longitude: float, mode: GeoMode | int = GeoMode.GEO_URI) -> str:
    lat = _coordinate(latitude, 90.0, "latitude")
    lon = _coordinate(longitude, 180.0, "longitude")
    try:
        geo_mode = GeoMode(mode)
    except ValueError as exc:
        raise EncodingError(f"unknown geo mode {mode!r}") from exc

    if geo_mode == GeoMode.NOKIA_MAPS:
        return f"http://m.ovi.me/?c={lat},{lon}"
    if geo_mode == GeoMode.NFC_INTERACTOR:
        return f"http://nfcinteractor.com/m?c={lat},{lon}"
    return f"geo:{lat},{lon}"


def geo_record(latitude: float, longitude: float, mode: GeoMode | int = GeoMode.GEO_URI) -> Record:
    return uri_record(geo_uri(latitude, longitude, mode))


# ==============================================================================
# vCalendar
# ==============================================================================


def vcalendar_time(moment: datetime, use_utc: bool, *, zero_based_month: bool = False) -> str:
    """Format as ``YYYYMMDDThhmmss`` with a trailing ``Z`` for UTC.

    Aware datetimes are converted to UTC first when ``use_utc`` is set.
    ``zero_based_month`` reproduces the month numbering of early encoders
    (January written as ``00``).
    """
    if use_utc and moment.tzinfo is not None:
        moment = moment.astimezone(UTC)
    month = moment.month - 1 if zero_based_month else moment.month
    return (
        f"{moment.year:04d}{month:02d}{moment.day:02d}"
        f"T{moment.hour:02d}{moment.minute:02d}{moment.second:02d}"
        + ("Z" if use_utc else "")
    )


def vcalendar_body(
    summary: str,
    start: datetime,
    end: datetime,
    use_utc: bool = False,
    *,
    zero_based_month: bool = False,
) -> str:
    if "\n" in summary or "\r" in summary:
        raise EncodingError("vCalendar summary must be a single line")
    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:1.0",
        "BEGIN:VEVENT",
        "DTSTART:" + vcalendar_time(start, use_utc, zero_based_month=zero_based_month),
        "DTEND:" + vcalendar_time(end, use_utc, zero_based_month=zero_based_month),
        "SUMMARY:" + summary,
        "END:VEVENT",
        "END:VCALENDAR",
    ]
    return "\n".join(lines)


def vcalendar_record(
    summary: str,
    start: datetime,
    end: datetime,
    use_utc: bool = False,
    *,
    zero_based_month: bool = False,
) -> Record:
    body = vcalendar_body(summary, start, end, use_utc, zero_based_month=zero_based_month)
    return mime_record(VCALENDAR_MIME, body.encode("utf-8"))


# ==============================================================================
# Smart Poster
# ==============================================================================


def smart_poster_record(
    uri: str | None = None,
    title: str | None = None,
    action: Action | int | None = None,
    image: bytes | None = None,
    image_filename: str | None = None,
    *,
    write_uri: bool = True,
    write_title: bool = False,
    write_action: bool = False,
    write_image: bool = False,
    title_language: str = "en",
) -> Record:
    """Well-known ``Sp`` record whose payload is a complete inner message.

    Children are appended in the fixed order URI, title, action, image;
    only the selected ones are written.
    """
    inner = Message()
    if write_uri:
        inner.append(uri_record(uri or ""))
    if write_title:
        inner.append(text_record(title or "", title_language))
    if write_action:
        if action is None:
            raise EncodingError("Smart Poster action is selected but not set")
        inner.append(action_record(action))
    if write_image:
        inner.append(image_record(image or b"", image_filename or ""))
    if not len(inner):
        raise EncodingError("Smart Poster needs at least one selected child record")
    return Record(TNF.WELL_KNOWN, SMART_POSTER_TYPE, inner.to_bytes())


def sms_uri(number: str, body: str) -> str:
    return f"sms:{number}?body={body}"


def sms_record(
    number: str,
    body: str,
    title: str | None = None,
    action: Action | int | None = None,
    *,
    write_title: bool = False,
    write_action: bool = False,
    title_language: str = "en",
) -> Record:
    """SMS link; wrapped in a Smart Poster when a title or an action is selected."""
    uri = sms_uri(number, body)
    if write_title or write_action:
        return smart_poster_record(
            uri,
            title,
            action,
            write_title=write_title,
            write_action=write_action,
            title_language=title_language,
        )
    return uri_record(uri)
