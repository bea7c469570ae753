"""Chat module for retrieval-augmented conversations."""

from ragbot.chat.chat_orchestrator import (
    EMPTY_REPLY_PLACEHOLDER,
    FALLBACK_ERROR_MESSAGE,
    RESET_CONFIRMATION,
    ChatOrchestrator,
    InvalidMessageError,
)
from ragbot.chat.context_builder import (
    ConversationContextBuilder,
    format_passages,
    parse_cited_sources,
)

__all__ = [
    "EMPTY_REPLY_PLACEHOLDER",
    "FALLBACK_ERROR_MESSAGE",
    "RESET_CONFIRMATION",
    "ChatOrchestrator",
    "InvalidMessageError",
    "ConversationContextBuilder",
    "format_passages",
    "parse_cited_sources",
]
