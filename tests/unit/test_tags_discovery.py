"""Tests for DiscoveryCoordinator: registration, worker dispatch and overlap handling."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from typing import Any
from unittest.mock import patch

import pytest
import structlog

from nfc_creator.core.config import Settings
from nfc_creator.ndef import Message, uri_record
from nfc_creator.tags import (
    AlertSeverity,
    ConfigError,
    DiscoveryCoordinator,
    SessionMode,
    TagSession,
    TransportError,
)
from nfc_creator.tags.platform import NDEF_TAG, ContactlessError
from tests.fakes import (
    MIFARE_CONNECTION,
    FakeConnector,
    FakeNdefConnection,
    FakePlatform,
    FakeRawConnection,
    FakeTarget,
    RecordingHost,
)


class RecordingListener:
    """Reads the tag on each ready session; can be held open with ``gate``."""

    def __init__(self, mode: SessionMode = SessionMode.NDEF) -> None:
        self.mode = mode
        self.messages: list[Message] = []
        self.sessions: list[TagSession] = []
        self.threads: list[str] = []
        self.contexts: list[dict[str, Any]] = []
        self.entered = threading.Event()
        self.gate = threading.Event()
        self.gate.set()
        self.error: Exception | None = None

    def tag_ready(self, session: TagSession) -> None:
        self.sessions.append(session)
        self.threads.append(threading.current_thread().name)
        self.contexts.append(structlog.contextvars.get_contextvars())
        self.entered.set()
        self.gate.wait(2.0)
        if self.error is not None:
            raise self.error
        if self.mode == SessionMode.NDEF:
            self.messages.append(session.read_ndef())


@pytest.fixture
def target() -> FakeTarget:
    return FakeTarget()


@pytest.fixture
def connector(target: FakeTarget) -> FakeConnector:
    data = Message([uri_record("http://nokia.com/")]).to_bytes()
    return FakeConnector({target.url: lambda: FakeNdefConnection(data)})


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def coordinator(
    platform: FakePlatform,
    connector: FakeConnector,
    listener: RecordingListener,
    host: RecordingHost,
    settings: Settings,
) -> Iterator[DiscoveryCoordinator]:
    coordinator = DiscoveryCoordinator(platform, connector, listener, host, settings=settings)
    yield coordinator
    coordinator.stop()


class TestRegistration:
    """start/stop against the platform."""

    def test_start_registers_for_ndef_targets(
        self, coordinator: DiscoveryCoordinator, platform: FakePlatform
    ) -> None:
        coordinator.start()
        assert coordinator.registered
        assert platform.listeners == [(coordinator.target_detected, NDEF_TAG)]

    def test_start_twice_keeps_one_registration(
        self, coordinator: DiscoveryCoordinator, platform: FakePlatform
    ) -> None:
        coordinator.start()
        coordinator.start()
        assert len(platform.listeners) == 1

    def test_stop_deregisters(
        self, coordinator: DiscoveryCoordinator, platform: FakePlatform
    ) -> None:
        coordinator.start()
        coordinator.stop()
        assert not coordinator.registered
        assert platform.listeners == []

    def test_unsupported_platform(
        self,
        connector: FakeConnector,
        listener: RecordingListener,
        host: RecordingHost,
        settings: Settings,
    ) -> None:
        platform = FakePlatform(supported=["ISO14443"])
        coordinator = DiscoveryCoordinator(platform, connector, listener, host, settings=settings)
        with pytest.raises(ConfigError, match="not supported"):
            coordinator.start()
        assert host.alerts == [
            (
                "Error registering for NDEF targets",
                "NDEF Tag type not supported",
                AlertSeverity.ERROR,
            )
        ]
        assert platform.listeners == []

    def test_registration_failure_is_reported(
        self,
        connector: FakeConnector,
        listener: RecordingListener,
        host: RecordingHost,
        settings: Settings,
    ) -> None:
        class RefusingPlatform(FakePlatform):
            def add_target_listener(self, listener: object, target_type: str) -> None:
                raise ContactlessError("denied")

        coordinator = DiscoveryCoordinator(
            RefusingPlatform(), connector, listener, host, settings=settings
        )
        with pytest.raises(TransportError, match="denied"):
            coordinator.start()
        assert host.alerts[0][0] == "ContactlessException"
        assert not coordinator.registered


class TestArrivals:
    """Target arrivals turned into worker sessions."""

    def test_touch_runs_tag_ready_on_worker(
        self,
        coordinator: DiscoveryCoordinator,
        platform: FakePlatform,
        listener: RecordingListener,
        target: FakeTarget,
    ) -> None:
        coordinator.start()
        platform.touch([target])
        assert coordinator.join(2.0)
        assert listener.threads == ["nfc-tag-worker"]
        assert listener.messages == [Message([uri_record("http://nokia.com/")])]

    def test_session_is_released_after_worker(
        self,
        coordinator: DiscoveryCoordinator,
        platform: FakePlatform,
        connector: FakeConnector,
        target: FakeTarget,
    ) -> None:
        coordinator.start()
        platform.touch([target])
        assert coordinator.join(2.0)
        assert coordinator.session is None
        assert not coordinator.busy
        assert connector.live_count() == 0

    def test_consecutive_touches_each_get_a_session(
        self,
        coordinator: DiscoveryCoordinator,
        platform: FakePlatform,
        listener: RecordingListener,
        connector: FakeConnector,
        target: FakeTarget,
    ) -> None:
        coordinator.start()
        for _ in range(3):
            platform.touch([target])
            assert coordinator.join(2.0)
        assert len(listener.sessions) == 3
        assert len(set(map(id, listener.sessions))) == 3
        assert connector.max_live == 1

    def test_overlapping_touch_is_dropped(
        self,
        coordinator: DiscoveryCoordinator,
        platform: FakePlatform,
        listener: RecordingListener,
        connector: FakeConnector,
        host: RecordingHost,
        target: FakeTarget,
    ) -> None:
        listener.gate.clear()
        coordinator.start()
        platform.touch([target])
        assert listener.entered.wait(2.0)
        assert coordinator.busy

        platform.touch([target])
        assert host.alerts == [
            ("Target detected", "Previous tag operation still in progress", AlertSeverity.WARNING)
        ]
        assert len(connector.opened) == 1

        listener.gate.set()
        assert coordinator.join(2.0)
        assert len(listener.sessions) == 1
        assert connector.max_live == 1

    def test_empty_arrival_warns(
        self, coordinator: DiscoveryCoordinator, platform: FakePlatform, host: RecordingHost
    ) -> None:
        coordinator.start()
        platform.touch([])
        assert host.alerts == [
            ("Target detected", "No target properties available", AlertSeverity.WARNING)
        ]

    def test_open_failure_is_reported_and_releases_busy(
        self,
        platform: FakePlatform,
        listener: RecordingListener,
        host: RecordingHost,
        settings: Settings,
    ) -> None:
        target = FakeTarget(ndef=False)
        coordinator = DiscoveryCoordinator(
            platform, FakeConnector({}), listener, host, settings=settings
        )
        coordinator.start()
        platform.touch([target])
        assert listener.sessions == []
        assert not coordinator.busy
        title, text, severity = host.alerts[0]
        assert (title, severity) == ("Target detected", AlertSeverity.ERROR)
        assert text.startswith("Unable to process tag:")
        coordinator.stop()

    def test_unexpected_open_error_releases_busy(
        self,
        platform: FakePlatform,
        listener: RecordingListener,
        host: RecordingHost,
        settings: Settings,
        target: FakeTarget,
    ) -> None:
        """A connector failing with a non-platform error must not wedge discovery."""
        attempts: list[int] = []

        def open_once_broken() -> FakeNdefConnection:
            attempts.append(1)
            if len(attempts) == 1:
                raise ValueError("malformed connection url")
            return FakeNdefConnection(b"")

        connector = FakeConnector({target.url: open_once_broken})
        coordinator = DiscoveryCoordinator(platform, connector, listener, host, settings=settings)
        coordinator.start()

        platform.touch([target])
        assert not coordinator.busy
        assert listener.sessions == []
        title, text, severity = host.alerts[0]
        assert (title, severity) == ("Target detected", AlertSeverity.ERROR)
        assert "malformed connection url" in text

        platform.touch([target])
        assert coordinator.join(2.0)
        assert len(listener.sessions) == 1
        coordinator.stop()

    def test_listener_mode_failure_releases_busy(
        self,
        connector: FakeConnector,
        platform: FakePlatform,
        host: RecordingHost,
        settings: Settings,
        target: FakeTarget,
    ) -> None:
        class BrokenModeListener(RecordingListener):
            @property
            def mode(self) -> SessionMode:
                raise RuntimeError("controller not ready")

            @mode.setter
            def mode(self, value: SessionMode) -> None:
                pass

        coordinator = DiscoveryCoordinator(
            platform, connector, BrokenModeListener(), host, settings=settings
        )
        coordinator.start()
        platform.touch([target])
        assert not coordinator.busy
        assert host.alerts[0][1] == "Unable to process tag: RuntimeError: controller not ready"
        coordinator.stop()

    def test_worker_start_failure_closes_session(
        self,
        coordinator: DiscoveryCoordinator,
        platform: FakePlatform,
        connector: FakeConnector,
        host: RecordingHost,
        target: FakeTarget,
    ) -> None:
        coordinator.start()
        with patch.object(threading.Thread, "start", side_effect=RuntimeError("no threads")):
            platform.touch([target])
        assert not coordinator.busy
        assert coordinator.session is None
        assert connector.live_count() == 0
        assert host.alerts[0][2] == AlertSeverity.ERROR

    def test_worker_logs_carry_tag_context(
        self,
        coordinator: DiscoveryCoordinator,
        platform: FakePlatform,
        listener: RecordingListener,
        target: FakeTarget,
    ) -> None:
        coordinator.start()
        platform.touch([target])
        assert coordinator.join(2.0)
        assert listener.contexts == [{"uid": target.uid, "mode": "ndef"}]

    def test_listener_failure_does_not_wedge_discovery(
        self,
        coordinator: DiscoveryCoordinator,
        platform: FakePlatform,
        listener: RecordingListener,
        target: FakeTarget,
    ) -> None:
        listener.error = RuntimeError("boom")
        coordinator.start()
        platform.touch([target])
        assert coordinator.join(2.0)
        assert not coordinator.busy

        listener.error = None
        platform.touch([target])
        assert coordinator.join(2.0)
        assert len(listener.messages) == 1

    def test_raw_mode_listener_gets_raw_session(
        self, platform: FakePlatform, host: RecordingHost, settings: Settings
    ) -> None:
        target = FakeTarget(connections=[MIFARE_CONNECTION])
        raw = FakeRawConnection()
        connector = FakeConnector({f"{MIFARE_CONNECTION}://{target.uid}": raw})
        listener = RecordingListener(SessionMode.RAW)
        coordinator = DiscoveryCoordinator(platform, connector, listener, host, settings=settings)
        coordinator.start()
        platform.touch([target])
        assert coordinator.join(2.0)
        assert listener.sessions[0].mode == SessionMode.RAW
        assert raw.closed
        coordinator.stop()

    def test_arrivals_after_stop_are_ignored(
        self,
        coordinator: DiscoveryCoordinator,
        listener: RecordingListener,
        target: FakeTarget,
    ) -> None:
        coordinator.start()
        coordinator.stop()
        coordinator.target_detected([target])
        assert listener.sessions == []

    def test_stop_closes_live_session(
        self,
        coordinator: DiscoveryCoordinator,
        platform: FakePlatform,
        listener: RecordingListener,
        connector: FakeConnector,
        target: FakeTarget,
    ) -> None:
        listener.gate.clear()
        coordinator.start()
        platform.touch([target])
        assert listener.entered.wait(2.0)
        listener.gate.set()
        coordinator.stop()
        assert coordinator.session is None
        assert connector.live_count() == 0
