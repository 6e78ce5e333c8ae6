"""Tests for Settings loading from NFC_* environment variables."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from nfc_creator.core.config import Settings, get_settings


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.ndef_mode is True
    assert settings.raw_connection_name == "com.nokia.nfc.nxp.mfstd.MFStandardConnection"
    assert settings.mifare_default_key_bytes == b"\xff" * 6
    assert settings.default_language == "en"
    assert settings.vcalendar_zero_based_month is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("NFC_NDEF_MODE", "false")
    monkeypatch.setenv("NFC_MIFARE_DEFAULT_KEY", "a0a1a2a3a4a5")
    monkeypatch.setenv("NFC_LOG_LEVEL", "DEBUG")
    settings = Settings(_env_file=None)
    assert settings.ndef_mode is False
    assert settings.mifare_default_key_bytes == bytes.fromhex("A0A1A2A3A4A5")
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("key", ["FFFF", "not-hex-at-all!", "FFFFFFFFFFFFFF"])
def test_invalid_mifare_key(key: str) -> None:
    with pytest.raises(ValidationError, match="mifare_default_key"):
        Settings(_env_file=None, mifare_default_key=key)


def test_get_settings_is_cached() -> None:
    assert get_settings() is get_settings()
