"""Encode NDEF messages offline and print them as hex: python -m nfc_creator"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime

from nfc_creator.core.config import get_settings
from nfc_creator.core.logging import configure_logging
from nfc_creator.ndef import (
    Action,
    EncodingError,
    GeoMode,
    Message,
    external_record,
    geo_record,
    smart_poster_record,
    text_record,
    uri_record,
    vcalendar_record,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="nfc_creator",
        description="Encode an NDEF message and print its bytes as hex.",
    )
    sub = parser.add_subparsers(dest="kind", required=True)

    uri = sub.add_parser("uri", help="URI record with prefix abbreviation")
    uri.add_argument("uri")

    text = sub.add_parser("text", help="UTF-8 text record")
    text.add_argument("text")
    text.add_argument("--language", default=None, help="IANA language tag")

    geo = sub.add_parser("geo", help="Coordinates as a URI record")
    geo.add_argument("latitude", type=float)
    geo.add_argument("longitude", type=float)
    geo.add_argument(
        "--mode",
        type=int,
        choices=[mode.value for mode in GeoMode],
        default=GeoMode.GEO_URI.value,
        help="0: geo: URI, 1: Nokia Maps link, 2: NfcInteractor redirect",
    )

    poster = sub.add_parser("smartposter", help="Smart Poster with URI and optional title/action")
    poster.add_argument("uri")
    poster.add_argument("--title", default=None)
    poster.add_argument(
        "--action",
        choices=[action.name.lower() for action in Action],
        default=None,
    )

    custom = sub.add_parser("custom", help="NFC Forum external type record")
    custom.add_argument("type_uri", help="e.g. urn:nfc:ext:example.com:foo")
    custom.add_argument("payload", help="Payload text, written as UTF-8")

    calendar = sub.add_parser("vcalendar", help="vCalendar event as a MIME record")
    calendar.add_argument("summary")
    calendar.add_argument("start", type=datetime.fromisoformat)
    calendar.add_argument("end", type=datetime.fromisoformat)
    calendar.add_argument("--utc", action="store_true")

    return parser.parse_args(argv)


def build_message(args: argparse.Namespace) -> Message:
    settings = get_settings()
    if args.kind == "uri":
        return Message([uri_record(args.uri)])
    if args.kind == "text":
        return Message([text_record(args.text, args.language or settings.default_language)])
    if args.kind == "geo":
        return Message([geo_record(args.latitude, args.longitude, args.mode)])
    if args.kind == "smartposter":
        action = Action[args.action.upper()] if args.action else None
        record = smart_poster_record(
            args.uri,
            args.title,
            action,
            write_title=args.title is not None,
            write_action=action is not None,
            title_language=settings.default_language,
        )
        return Message([record])
    if args.kind == "custom":
        return Message([external_record(args.type_uri, args.payload.encode("utf-8"))])
    return Message(
        [
            vcalendar_record(
                args.summary,
                args.start,
                args.end,
                args.utc,
                zero_based_month=settings.vcalendar_zero_based_month,
            )
        ]
    )


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    args = _parse_args(argv)
    try:
        data = build_message(args).to_bytes()
    except EncodingError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    print(data.hex(" ").upper())
    return 0


if __name__ == "__main__":
    sys.exit(main())
