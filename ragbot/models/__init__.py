"""Data models module."""

from ragbot.models.conversation import (
    ASSISTANT_ROLE,
    SYSTEM_ROLE,
    USER_ROLE,
    ChatMessage,
    ChatReply,
)
from ragbot.models.document import Chunk, DocumentRecord, DocumentSummary
from ragbot.models.passage import PassageSource, RetrievedPassage

__all__ = [
    "ASSISTANT_ROLE",
    "SYSTEM_ROLE",
    "USER_ROLE",
    "ChatMessage",
    "ChatReply",
    "Chunk",
    "DocumentRecord",
    "DocumentSummary",
    "PassageSource",
    "RetrievedPassage",
]
