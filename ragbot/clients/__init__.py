"""Client modules for external services."""

from ragbot.clients.azure_clients import (
    create_openai_client,
    create_search_client,
    create_search_index_client,
)
from ragbot.clients.completion_client import CompletionClient, CompletionError
from ragbot.clients.embedding_client import (
    EmbeddingClient,
    EmbeddingError,
    InvalidEmbeddingResponse,
)
from ragbot.clients.retry import call_with_retry
from ragbot.clients.telegram_client import TelegramApiError, TelegramBotClient

__all__ = [
    "create_openai_client",
    "create_search_client",
    "create_search_index_client",
    "CompletionClient",
    "CompletionError",
    "EmbeddingClient",
    "EmbeddingError",
    "InvalidEmbeddingResponse",
    "call_with_retry",
    "TelegramApiError",
    "TelegramBotClient",
]
