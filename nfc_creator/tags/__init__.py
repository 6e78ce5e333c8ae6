"""Tag sessions, raw block access and target discovery."""

from nfc_creator.tags.discovery import DiscoveryCoordinator, TagReadyListener
from nfc_creator.tags.errors import (
    AuthError,
    ConfigError,
    DisconnectedError,
    FormatError,
    TagError,
    TagOverflowError,
    TransportError,
)
from nfc_creator.tags.host import AlertSeverity, TagHost
from nfc_creator.tags.mifare import DEFAULT_KEY, MifareAdapter
from nfc_creator.tags.session import SessionMode, SessionPhase, TagSession

__all__ = [
    "AlertSeverity",
    "AuthError",
    "ConfigError",
    "DEFAULT_KEY",
    "DisconnectedError",
    "DiscoveryCoordinator",
    "FormatError",
    "MifareAdapter",
    "SessionMode",
    "SessionPhase",
    "TagError",
    "TagHost",
    "TagOverflowError",
    "TagReadyListener",
    "TagSession",
    "TransportError",
]
