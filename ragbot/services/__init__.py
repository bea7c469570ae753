"""Stateful services owned by the service container."""

from ragbot.services.conversation_history import ConversationHistory
from ragbot.services.document_store import DocumentCatalog, DocumentStorage
from ragbot.services.embedding_cache import EmbeddingCache
from ragbot.services.scheduler import PeriodicTask

__all__ = [
    "ConversationHistory",
    "DocumentCatalog",
    "DocumentStorage",
    "EmbeddingCache",
    "PeriodicTask",
]
