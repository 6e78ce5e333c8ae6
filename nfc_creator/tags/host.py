"""Callback surface the tag layer reports to."""

from __future__ import annotations

from enum import Enum
from typing import Protocol


class AlertSeverity(str, Enum):
    """Alert kinds a host can display."""

    INFO = "info"
    CONFIRMATION = "confirmation"
    WARNING = "warning"
    ERROR = "error"


class TagHost(Protocol):
    """UI-side sink for results, alerts and tag dumps."""

    def tag_success(self, text: str) -> None: ...

    def tag_error(self, text: str) -> None: ...

    def display_alert(self, title: str, text: str, severity: AlertSeverity) -> None: ...

    def log_tag_info(self, text: str) -> None: ...
