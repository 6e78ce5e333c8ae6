"""Target discovery: turns platform arrivals into one ready session at a time."""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Protocol

import structlog

from nfc_creator.core.config import Settings, get_settings
from nfc_creator.core.logging import get_logger
from nfc_creator.tags.errors import ConfigError, TagError, translate_platform_error
from nfc_creator.tags.host import AlertSeverity, TagHost
from nfc_creator.tags.platform import (
    NDEF_TAG,
    ContactlessError,
    Connector,
    DiscoveryPlatform,
    TargetProperties,
)
from nfc_creator.tags.session import SessionMode, TagSession

logger = get_logger(__name__)


class TagReadyListener(Protocol):
    """Controller side of discovery: chooses the mode and runs the operation."""

    @property
    def mode(self) -> SessionMode: ...

    def tag_ready(self, session: TagSession) -> None: ...


class DiscoveryCoordinator:
    """Owns the single live tag session of the process.

    Each arrival closes whatever session is left, opens a new one in the
    listener's mode and hands it to a fresh worker thread that calls
    ``tag_ready`` exactly once. Arrivals during an in-flight operation are
    dropped with a warning, so ``tag_ready`` calls never overlap.
    """

    def __init__(
        self,
        platform: DiscoveryPlatform,
        connector: Connector,
        listener: TagReadyListener,
        host: TagHost,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._platform = platform
        self._connector = connector
        self._listener = listener
        self._host = host
        self._settings = settings or get_settings()
        self._lock = threading.Lock()
        self._busy = threading.Lock()
        self._session: TagSession | None = None
        self._worker: threading.Thread | None = None
        self._registered = False
        self._stopped = False

    @property
    def session(self) -> TagSession | None:
        """The live session, if a tag operation is in progress."""
        return self._session

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    @property
    def registered(self) -> bool:
        return self._registered

    def start(self) -> None:
        """Register for NDEF target arrivals.

        Raises ``ConfigError`` when the platform does not support NDEF targets.
        """
        self.stop()
        supported = self._platform.supported_target_types()
        if NDEF_TAG not in supported:
            self._host.display_alert(
                "Error registering for NDEF targets",
                "NDEF Tag type not supported",
                AlertSeverity.ERROR,
            )
            raise ConfigError("NDEF Tag type not supported")
        try:
            self._platform.add_target_listener(self.target_detected, NDEF_TAG)
        except ContactlessError as exc:
            self._host.display_alert(
                "ContactlessException",
                f"Unable to register TargetListener: {exc}",
                AlertSeverity.ERROR,
            )
            raise translate_platform_error(exc) from exc
        self._stopped = False
        self._registered = True
        logger.info("discovery_started", target_type=NDEF_TAG)

    def stop(self) -> None:
        """Deregister from the platform and close the live session.

        A worker still in flight is given ``worker_join_timeout_seconds`` to
        finish; after that its session is closed underneath it and the
        worker ends on its own.
        """
        self._stopped = True
        if self._registered:
            self._platform.remove_target_listener(self.target_detected, NDEF_TAG)
            self._registered = False
            logger.info("discovery_stopped")
        self.join(self._settings.worker_join_timeout_seconds)
        self._close_session()

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the current worker; returns ``True`` when none is running."""
        worker = self._worker
        if worker is None or worker is threading.current_thread():
            return True
        worker.join(timeout)
        return not worker.is_alive()

    def target_detected(self, candidates: Sequence[TargetProperties]) -> None:
        """Arrival sink registered with the platform; runs on the platform thread."""
        if not candidates:
            self._host.display_alert(
                "Target detected", "No target properties available", AlertSeverity.WARNING
            )
            return
        if self._stopped:
            logger.info("tag_arrival_ignored", reason="stopped")
            return
        if not self._busy.acquire(blocking=False):
            logger.warning("tag_arrival_dropped", reason="operation in progress")
            self._host.display_alert(
                "Target detected",
                "Previous tag operation still in progress",
                AlertSeverity.WARNING,
            )
            return

        session: TagSession | None = None
        try:
            self._close_session()
            session = TagSession.open(
                candidates,
                self._listener.mode,
                connector=self._connector,
                raw_connection_name=self._settings.raw_connection_name,
                default_key=self._settings.mifare_default_key_bytes,
            )
            with self._lock:
                self._session = session
            worker = threading.Thread(
                target=self._run_worker,
                args=(session,),
                name="nfc-tag-worker",
                daemon=True,
            )
            worker.start()
        except Exception as exc:
            self._abort_arrival(session, exc)
            return
        self._worker = worker

    def _abort_arrival(self, session: TagSession | None, exc: Exception) -> None:
        """Undo a failed arrival so the next touch is accepted again."""
        error = translate_platform_error(exc)
        if isinstance(exc, TagError):
            logger.warning(
                "tag_session_open_failed", error_type=type(error).__name__, error=str(error)
            )
        else:
            logger.exception("tag_session_open_failed", error_type=type(exc).__name__)
        if session is not None:
            self._release(session)
        self._busy.release()
        self._host.display_alert(
            "Target detected", f"Unable to process tag: {error}", AlertSeverity.ERROR
        )

    def _run_worker(self, session: TagSession) -> None:
        # Every log line of this touch carries the tag uid and session mode.
        with structlog.contextvars.bound_contextvars(uid=session.uid, mode=session.mode.value):
            try:
                self._listener.tag_ready(session)
            except Exception:
                logger.exception("tag_ready_failed")
            finally:
                self._release(session)
                self._busy.release()

    def _release(self, session: TagSession) -> None:
        with self._lock:
            if self._session is session:
                self._session = None
        session.close()

    def _close_session(self) -> None:
        with self._lock:
            session, self._session = self._session, None
        if session is not None:
            session.close()
