"""Per-touch tag session: one open connection and its operation state."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from enum import Enum
from typing import Any

from nfc_creator.core.logging import get_logger
from nfc_creator.ndef.message import Message
from nfc_creator.tags.errors import (
    ConfigError,
    FormatError,
    TagError,
    TagOverflowError,
    translate_platform_error,
)
from nfc_creator.tags.mifare import DEFAULT_KEY, MifareAdapter
from nfc_creator.tags.platform import (
    NDEF_TAG,
    Connector,
    NdefConnection,
    TargetProperties,
)

logger = get_logger(__name__)


class SessionMode(str, Enum):
    """Kind of connection a session holds."""

    NDEF = "ndef"
    RAW = "raw"


class SessionPhase(str, Enum):
    """Lifecycle phase of a session."""

    IDLE = "idle"
    CONNECTED = "connected"
    READING = "reading"
    WRITING = "writing"
    CLOSED = "closed"


class TagSession:
    """Holds at most one open tag connection for a single tag touch.

    ``idle -> connected -> reading|writing -> connected -> closed``. An I/O
    failure while reading or writing closes the session before the error is
    raised. Sessions are never reused: once closed, every operation raises
    :class:`ConfigError`.
    """

    def __init__(self, mode: SessionMode, *, uid: str | None = None) -> None:
        self._mode = mode
        self._uid = uid
        self._phase = SessionPhase.IDLE
        self._ndef: NdefConnection | None = None
        self._raw: MifareAdapter | None = None
        self._lock = threading.Lock()

    @classmethod
    def open(
        cls,
        candidates: Sequence[TargetProperties],
        mode: SessionMode,
        *,
        connector: Connector,
        raw_connection_name: str,
        default_key: bytes = DEFAULT_KEY,
    ) -> TagSession:
        """Open a connection of ``mode`` to the first compatible candidate.

        Raises ``ConfigError`` when no candidate offers such a connection and
        a ``TransportError`` when every compatible candidate failed to open.
        """
        if not candidates:
            raise ConfigError("No target properties available")

        if mode == SessionMode.NDEF:
            session = cls._open_ndef(candidates, connector)
        else:
            adapter = MifareAdapter.connect(
                candidates, connector, raw_connection_name, default_key=default_key
            )
            if adapter is None:
                raise ConfigError(f"No target offers a {raw_connection_name} connection")
            session = cls(SessionMode.RAW, uid=adapter.uid)
            session._raw = adapter

        session._phase = SessionPhase.CONNECTED
        logger.info("tag_session_opened", mode=session.mode.value, uid=session.uid)
        return session

    @classmethod
    def _open_ndef(
        cls, candidates: Sequence[TargetProperties], connector: Connector
    ) -> TagSession:
        failure: TagError | None = None
        for target in candidates:
            if not target.has_target_type(NDEF_TAG) or target.url is None:
                continue
            try:
                connection = connector.open(target.url)
            except Exception as exc:
                failure = translate_platform_error(exc)
                logger.warning("ndef_connection_open_failed", uid=target.uid, error=str(exc))
                continue
            session = cls(SessionMode.NDEF, uid=target.uid)
            session._ndef = connection
            return session
        if failure is not None:
            raise failure
        raise ConfigError("No target offers an NDEF connection")

    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def phase(self) -> SessionPhase:
        return self._phase

    @property
    def uid(self) -> str | None:
        return self._uid

    @property
    def is_open(self) -> bool:
        return self._phase not in (SessionPhase.IDLE, SessionPhase.CLOSED)

    @property
    def raw_adapter(self) -> MifareAdapter | None:
        return self._raw

    # ------------------------------------------------------------------
    # Operation bracketing
    # ------------------------------------------------------------------

    def _begin(self, phase: SessionPhase, mode: SessionMode) -> Any:
        with self._lock:
            if self._phase != SessionPhase.CONNECTED:
                raise ConfigError(f"No active {mode.value.upper()} connection")
            if self._mode != mode:
                verb = "read" if phase == SessionPhase.READING else "write"
                raise ConfigError(
                    f"Unable to {verb} {mode.value} data: app is in {self._mode.value.upper()} mode"
                )
            self._phase = phase
            return self._ndef if mode == SessionMode.NDEF else self._raw

    def _finish(self) -> None:
        with self._lock:
            if self._phase in (SessionPhase.READING, SessionPhase.WRITING):
                self._phase = SessionPhase.CONNECTED

    def _fail(self, exc: BaseException) -> TagError:
        error = translate_platform_error(exc)
        logger.warning(
            "tag_operation_failed",
            mode=self._mode.value,
            uid=self._uid,
            error_type=type(error).__name__,
            error=str(error),
        )
        self.close()
        return error

    # ------------------------------------------------------------------
    # NDEF operations
    # ------------------------------------------------------------------

    def read_ndef(self) -> Message:
        """Read the tag's message. Empty or unsupported contents give an empty message."""
        connection = self._begin(SessionPhase.READING, SessionMode.NDEF)
        try:
            data = connection.read_ndef()
            message = Message.from_bytes(data or b"")
        except Exception as exc:
            error = translate_platform_error(exc)
            if not isinstance(error, FormatError):
                raise self._fail(exc) from exc
            logger.warning("ndef_contents_unreadable", uid=self._uid, error=str(error))
            message = Message()
        self._finish()
        return message

    def write_ndef(self, message: Message) -> None:
        """Write ``message`` to the tag; encoding errors surface before any I/O."""
        data = message.to_bytes()
        connection = self._begin(SessionPhase.WRITING, SessionMode.NDEF)
        try:
            connection.write_ndef(data)
        except Exception as exc:
            raise self._fail(exc) from exc
        self._finish()
        logger.info("ndef_message_written", uid=self._uid, records=len(message), data=data)

    # ------------------------------------------------------------------
    # Raw operations
    # ------------------------------------------------------------------

    def read_raw(self, key: bytes | None = None) -> bytes:
        """Read the full data area of a raw-mode tag."""
        adapter: MifareAdapter = self._begin(SessionPhase.READING, SessionMode.RAW)
        try:
            data = adapter.read(key)
        except Exception as exc:
            raise self._fail(exc) from exc
        self._finish()
        return data

    def write_raw(self, data: bytes, key: bytes | None = None) -> None:
        """Write a full dump to a raw-mode tag."""
        adapter: MifareAdapter = self._begin(SessionPhase.WRITING, SessionMode.RAW)
        if len(data) > adapter.size_bytes:
            self.close()
            raise TagOverflowError(
                f"Not enough space on the tag: {len(data)} > {adapter.size_bytes} bytes"
            )
        try:
            adapter.write(key, data)
        except Exception as exc:
            raise self._fail(exc) from exc
        self._finish()

    def close(self) -> None:
        """Release the connection. Safe to call more than once."""
        with self._lock:
            if self._phase == SessionPhase.CLOSED:
                return
            self._phase = SessionPhase.CLOSED
            handle: Any = self._ndef if self._ndef is not None else self._raw
            self._ndef = None
            self._raw = None
        if handle is None:
            return
        try:
            handle.close()
        except Exception:
            logger.exception("tag_session_close_failed", uid=self._uid)
        logger.info("tag_session_closed", mode=self._mode.value, uid=self._uid)

    def __enter__(self) -> TagSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
