"""Pydantic schemas for tag operations and their inputs."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from nfc_creator.ndef.records import Action, GeoMode


class TagOperation(str, Enum):
    """What the next tag touch does."""

    READ = "read"
    WRITE_SMART_POSTER = "write_smart_poster"
    WRITE_URI = "write_uri"
    WRITE_TEXT = "write_text"
    WRITE_SMS = "write_sms"
    WRITE_ANNOTATED_URL = "write_annotated_url"
    WRITE_IMAGE = "write_image"
    WRITE_GEO = "write_geo"
    WRITE_CUSTOM = "write_custom"
    WRITE_COMBINATION = "write_combination"
    WRITE_VCALENDAR = "write_vcalendar"
    READ_RAW = "read_raw"
    WRITE_RAW = "write_raw"
    CLONE = "clone"
    DELETE = "delete"


RAW_OPERATIONS = frozenset({TagOperation.READ_RAW, TagOperation.WRITE_RAW})


class CloneStage(str, Enum):
    """Which touch of the two-touch clone flow comes next."""

    LEARN = "learn"
    WRITE = "write"


class TagRequest(BaseModel):
    """Inputs for the write operations; defaults match a fresh form."""

    url: str = "http://nokia.com/"
    text: str = "Nokia"
    language: str = "en"

    # Smart Poster children
    poster_write_uri: bool = True
    poster_write_title: bool = True
    poster_write_action: bool = False
    poster_write_image: bool = False
    action: Action = Action.EXECUTE
    image_filename: str | None = None
    image_data: bytes | None = Field(
        default=None,
        description="Image bytes; read from image_filename when not given",
    )

    # SMS
    sms_number: str = "+1234"
    sms_body: str = "Hello"
    sms_write_title: bool = False
    sms_write_action: bool = False

    # Geo
    latitude: float = Field(default=60.17, ge=-90, le=90)
    longitude: float = Field(default=24.829, ge=-180, le=180)
    geo_mode: GeoMode = GeoMode.GEO_URI

    # External type
    type_uri: str = "urn:nfc:ext:nokia.com:custom"
    custom_payload: str = "Nokia"

    # vCalendar
    cal_summary: str = "Develop NFC app"
    cal_start: datetime | None = None
    cal_end: datetime | None = None
    cal_use_utc: bool = False

    # Raw Mifare
    raw_dump: bytes | None = None
    raw_key: str | None = Field(
        default=None,
        pattern=r"^[0-9A-Fa-f]{12}$",
        description="Hex-encoded 6-byte key A; the configured default is used when unset",
    )

    @property
    def raw_key_bytes(self) -> bytes | None:
        return bytes.fromhex(self.raw_key) if self.raw_key else None
