"""
Pytest fixtures for the tag creator.
Provides a fake contactless platform, a recording host and isolated settings.
"""

from __future__ import annotations

import pytest

from nfc_creator.core.config import Settings, get_settings
from tests.fakes import FakePlatform, RecordingHost


@pytest.fixture(autouse=True)
def clear_settings_cache() -> None:
    """Each test starts from freshly parsed settings."""
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, worker_join_timeout_seconds=2.0)


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def platform() -> FakePlatform:
    return FakePlatform()
