"""Controller running the selected operation on each ready tag session."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from nfc_creator.core.config import Settings, get_settings
from nfc_creator.core.logging import get_logger
from nfc_creator.creator.schemas import (
    RAW_OPERATIONS,
    CloneStage,
    TagOperation,
    TagRequest,
)
from nfc_creator.ndef.errors import EncodingError, NdefError
from nfc_creator.ndef.message import Message
from nfc_creator.ndef.record import TNF, Record
from nfc_creator.ndef.records import (
    external_record,
    geo_record,
    image_record,
    smart_poster_record,
    sms_record,
    text_record,
    uri_record,
    vcalendar_record,
)
from nfc_creator.tags.errors import TagError
from nfc_creator.tags.host import AlertSeverity, TagHost
from nfc_creator.tags.session import SessionMode, TagSession

logger = get_logger(__name__)

_RECORD_TITLES = {b"Sp": "Smart Poster", b"U": "URL", b"T": "Text"}

_WRITE_RESULTS = {
    TagOperation.WRITE_SMART_POSTER: "Smart Poster written",
    TagOperation.WRITE_URI: "URI written",
    TagOperation.WRITE_TEXT: "Text written",
    TagOperation.WRITE_SMS: "Sms tag written",
    TagOperation.WRITE_ANNOTATED_URL: "Annotated URL tag written",
    TagOperation.WRITE_IMAGE: "Image written",
    TagOperation.WRITE_GEO: "Geo URI written",
    TagOperation.WRITE_CUSTOM: "Custom tag written",
    TagOperation.WRITE_COMBINATION: "Combination tag written",
    TagOperation.WRITE_VCALENDAR: "vCalendar written",
}


def describe_message(message: Message) -> list[tuple[str, str]]:
    """Return ``(title, text)`` per record for display.

    Smart Poster, URI and Text records are recognized by type name and their
    payload is echoed verbatim; anything else is listed by format and name.
    """
    entries: list[tuple[str, str]] = []
    total = len(message)
    for index, record in enumerate(message, start=1):
        title = _RECORD_TITLES.get(record.type) if record.tnf == TNF.WELL_KNOWN else None
        if title is not None:
            entries.append((title, record.payload.decode("utf-8", errors="replace")))
        else:
            entries.append(
                (
                    f"Record {index}/{total}",
                    f"Format = {record.tnf.value}, Name = {record.type_name}",
                )
            )
    return entries


class TagController:
    """Runs one :class:`TagOperation` per tag touch and reports to the host.

    The controller also owns the clone flow: the first touch caches the tag's
    message, the second writes it and clears the cache.
    """

    def __init__(self, host: TagHost, *, settings: Settings | None = None) -> None:
        self._host = host
        self._settings = settings or get_settings()
        self._operation = TagOperation.READ if self._settings.ndef_mode else TagOperation.READ_RAW
        self.request = TagRequest(language=self._settings.default_language)
        self._clone_stage = CloneStage.LEARN
        self._cached_message: Message | None = None
        self.last_dump: bytes | None = None
        self._handlers: dict[TagOperation, Callable[[TagSession], None]] = {
            TagOperation.READ: self._read,
            TagOperation.READ_RAW: self._read_raw,
            TagOperation.WRITE_RAW: self._write_raw,
            TagOperation.CLONE: self._clone,
            TagOperation.DELETE: self._delete,
        }

    @property
    def operation(self) -> TagOperation:
        return self._operation

    @property
    def mode(self) -> SessionMode:
        return SessionMode.RAW if self._operation in RAW_OPERATIONS else SessionMode.NDEF

    @property
    def clone_stage(self) -> CloneStage:
        return self._clone_stage

    @property
    def cached_message(self) -> Message | None:
        return self._cached_message

    def set_operation(self, operation: TagOperation, request: TagRequest | None = None) -> None:
        """Select what the next touch does; selecting clone restarts the flow."""
        self._operation = TagOperation(operation)
        if request is not None:
            self.request = request
        if self._operation == TagOperation.CLONE:
            self._clone_stage = CloneStage.LEARN
            self._cached_message = None
        logger.info("tag_operation_selected", operation=self._operation.value, mode=self.mode.value)

    # ------------------------------------------------------------------
    # Discovery callback
    # ------------------------------------------------------------------

    def tag_ready(self, session: TagSession) -> None:
        """Run the selected operation on ``session``; failures go to ``tag_error``."""
        operation = self._operation
        try:
            handler = self._handlers.get(operation)
            if handler is not None:
                handler(session)
            else:
                self._write(session, operation)
        except (TagError, NdefError) as exc:
            logger.warning(
                "tag_operation_failed",
                operation=operation.value,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            self._host.tag_error(str(exc))

    # ------------------------------------------------------------------
    # Message building
    # ------------------------------------------------------------------

    def build_message(self, operation: TagOperation | None = None) -> Message:
        """Encode the message a write operation puts on the tag. No I/O."""
        operation = TagOperation(operation or self._operation)
        request = self.request
        title_language = self._settings.default_language

        if operation == TagOperation.WRITE_URI:
            records = [uri_record(request.url)]
        elif operation == TagOperation.WRITE_TEXT:
            records = [text_record(request.text, request.language)]
        elif operation == TagOperation.WRITE_SMART_POSTER:
            records = [
                smart_poster_record(
                    request.url,
                    request.text,
                    request.action,
                    self._image_bytes() if request.poster_write_image else None,
                    request.image_filename,
                    write_uri=request.poster_write_uri,
                    write_title=request.poster_write_title,
                    write_action=request.poster_write_action,
                    write_image=request.poster_write_image,
                    title_language=title_language,
                )
            ]
        elif operation == TagOperation.WRITE_SMS:
            records = [
                sms_record(
                    request.sms_number,
                    request.sms_body,
                    request.text,
                    request.action,
                    write_title=request.sms_write_title,
                    write_action=request.sms_write_action,
                    title_language=title_language,
                )
            ]
        elif operation == TagOperation.WRITE_ANNOTATED_URL:
            records = [uri_record(request.url), text_record(request.text, title_language)]
        elif operation == TagOperation.WRITE_IMAGE:
            records = [image_record(self._image_bytes(), request.image_filename or "")]
        elif operation == TagOperation.WRITE_GEO:
            records = [geo_record(request.latitude, request.longitude, request.geo_mode)]
        elif operation == TagOperation.WRITE_CUSTOM:
            records = [external_record(request.type_uri, request.custom_payload.encode("utf-8"))]
        elif operation == TagOperation.WRITE_COMBINATION:
            records = [
                external_record(request.type_uri, request.custom_payload.encode("utf-8")),
                uri_record(request.url),
            ]
        elif operation == TagOperation.WRITE_VCALENDAR:
            if request.cal_start is None or request.cal_end is None:
                raise EncodingError("vCalendar start and end are required")
            records = [
                vcalendar_record(
                    request.cal_summary,
                    request.cal_start,
                    request.cal_end,
                    request.cal_use_utc,
                    zero_based_month=self._settings.vcalendar_zero_based_month,
                )
            ]
        else:
            raise EncodingError(f"{operation.value} does not write an NDEF message")
        return Message(records)

    def _image_bytes(self) -> bytes:
        request = self.request
        if request.image_data is not None:
            return request.image_data
        if not request.image_filename:
            raise EncodingError("No image selected")
        try:
            return Path(request.image_filename).read_bytes()
        except OSError as exc:
            raise EncodingError(f"Error loading image {request.image_filename!r}: {exc}") from exc

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _write(self, session: TagSession, operation: TagOperation) -> None:
        message = self.build_message(operation)
        session.write_ndef(message)
        self._host.tag_success(_WRITE_RESULTS[operation])

    def _read(self, session: TagSession) -> None:
        message = session.read_ndef()
        if not len(message):
            self._host.display_alert("Read NDEF", "No records in the message.", AlertSeverity.ERROR)
            self._host.log_tag_info("No records in this message\n")
            return
        contents = []
        for title, text in describe_message(message):
            self._host.display_alert(title, text, AlertSeverity.CONFIRMATION)
            contents.append(f"{title}\n{text}\n")
        self._host.log_tag_info("".join(contents))

    def _delete(self, session: TagSession) -> None:
        message = session.read_ndef()
        if not len(message):
            self._host.tag_success("Tag already empty")
            return
        session.write_ndef(Message([Record.empty()]))
        self._host.tag_success("Wrote empty message.")

    def _clone(self, session: TagSession) -> None:
        if self._clone_stage == CloneStage.LEARN:
            message = session.read_ndef()
            if not len(message):
                self._host.tag_error("No NDEF message on the tag to clone")
                return
            self._cached_message = message
            self._clone_stage = CloneStage.WRITE
            logger.info("clone_message_cached", records=len(message))
            self._host.tag_success("Learned message from tag")
            return

        if self._cached_message is None:
            self._clone_stage = CloneStage.LEARN
            self._host.tag_error("No cached message to write")
            return
        session.write_ndef(self._cached_message)
        self._cached_message = None
        self._clone_stage = CloneStage.LEARN
        self._host.tag_success("Tag clone written")

    def _read_raw(self, session: TagSession) -> None:
        data = session.read_raw(self.request.raw_key_bytes)
        self.last_dump = data
        adapter = session.raw_adapter
        sectors = adapter.sector_count if adapter is not None else 0
        size = adapter.size_bytes if adapter is not None else len(data)
        self._host.display_alert(
            "Mifare tag read", "Mifare data read from tag", AlertSeverity.CONFIRMATION
        )
        self._host.log_tag_info(f"Mifare tag\nSectors: {sectors}, Size: {size}, Read: {len(data)}")

    def _write_raw(self, session: TagSession) -> None:
        dump = self.request.raw_dump
        if not dump:
            raise EncodingError("No raw dump to write")
        session.write_raw(dump, self.request.raw_key_bytes)
        self._host.display_alert(
            "Mifare tag written",
            f"Mifare data written to tag ({len(dump)} bytes)",
            AlertSeverity.CONFIRMATION,
        )
        self._host.tag_success("Raw data written")
