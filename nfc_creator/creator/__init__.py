"""Tag operation controller: binds tag sessions to a host UI."""

from nfc_creator.creator.schemas import CloneStage, TagOperation, TagRequest
from nfc_creator.creator.service import TagController, describe_message

__all__ = [
    "CloneStage",
    "TagController",
    "TagOperation",
    "TagRequest",
    "describe_message",
]
