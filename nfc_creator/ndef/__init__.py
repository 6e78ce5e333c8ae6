"""NDEF record codec, message assembler and URI prefix table."""

from nfc_creator.ndef.errors import DecodeError, EncodingError, NdefError
from nfc_creator.ndef.message import Message
from nfc_creator.ndef.record import TNF, Record
from nfc_creator.ndef.records import (
    Action,
    GeoMode,
    action_record,
    decode_text,
    decode_uri,
    external_record,
    geo_record,
    geo_uri,
    image_record,
    mime_record,
    smart_poster_record,
    sms_record,
    text_record,
    uri_record,
    vcalendar_record,
)
from nfc_creator.ndef.uri_prefixes import URI_PREFIXES

__all__ = [
    "Action",
    "DecodeError",
    "EncodingError",
    "GeoMode",
    "Message",
    "NdefError",
    "Record",
    "TNF",
    "URI_PREFIXES",
    "action_record",
    "decode_text",
    "decode_uri",
    "external_record",
    "geo_record",
    "geo_uri",
    "image_record",
    "mime_record",
    "smart_poster_record",
    "sms_record",
    "text_record",
    "uri_record",
    "vcalendar_record",
]
