"""Tests for the structlog setup."""

from __future__ import annotations

import logging
import sys

import pytest

from nfc_creator.core.config import Settings
from nfc_creator.core.logging import MAX_LOGGED_BYTES, configure_logging, render_bytes_as_hex


class TestRenderBytesAsHex:
    def test_bytes_become_spaced_hex(self) -> None:
        event = render_bytes_as_hex(None, "info", {"event": "x", "key": b"\xff\x00\xa5"})
        assert event == {"event": "x", "key": "FF 00 A5"}

    def test_long_values_are_truncated(self) -> None:
        event = render_bytes_as_hex(None, "debug", {"dump": bytearray(1024)})
        assert event["dump"].startswith("00 " * (MAX_LOGGED_BYTES - 1) + "00 ...")
        assert event["dump"].endswith("(1024 bytes)")

    def test_other_values_are_untouched(self) -> None:
        event = {"uid": "04A1B2C3", "records": 2}
        assert render_bytes_as_hex(None, "info", dict(event)) == event


def test_logs_go_to_stderr(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    configure_logging(Settings(_env_file=None, log_level="DEBUG"))
    assert root.level == logging.DEBUG
    assert [handler.stream for handler in root.handlers] == [sys.stderr]
