"""Service wiring and process lifecycle."""

import asyncio
import logging
from typing import Optional

from ragbot.bot.telegram_handlers import TelegramPoller, TelegramUpdateHandler
from ragbot.chat.chat_orchestrator import ChatOrchestrator
from ragbot.chat.context_builder import ConversationContextBuilder
from ragbot.clients.azure_clients import (
    create_openai_client,
    create_search_client,
    create_search_index_client,
)
from ragbot.clients.completion_client import CompletionClient
from ragbot.clients.embedding_client import EmbeddingClient
from ragbot.clients.telegram_client import TelegramApiError, TelegramBotClient
from ragbot.config.configuration import AppConfig
from ragbot.ingestion.document_ingestion import DocumentIngestionPipeline
from ragbot.ingestion.search_index import SearchIndexManager
from ragbot.retrieval.fusion import RetrievalFusionEngine
from ragbot.retrieval.local_store import LocalVectorStore
from ragbot.retrieval.remote_search import RemoteSearchAdapter
from ragbot.services.conversation_history import ConversationHistory
from ragbot.services.document_store import DocumentCatalog, DocumentStorage
from ragbot.services.embedding_cache import EmbeddingCache
from ragbot.services.health_monitor import HealthMonitor
from ragbot.services.scheduler import PeriodicTask

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Builds every service from configuration and owns their lifecycle.

    SDK clients can be injected (tests pass fakes); otherwise they are
    created from configuration. Background tasks (cache sweep, health
    recovery, Telegram polling) are started by ``start`` and cancelled by
    ``shutdown``.
    """

    def __init__(
        self,
        config: AppConfig,
        openai_client=None,
        search_client=None,
        index_client=None,
        telegram_client: Optional[TelegramBotClient] = None,
    ):
        self.config = config

        self.openai_client = openai_client or create_openai_client(config)
        self.search_client = search_client or create_search_client(config)
        self.index_client = index_client or create_search_index_client(config)

        self.embedding_cache = EmbeddingCache(config.cache.max_entries, config.cache.eviction_fraction)
        self.embedding_client = EmbeddingClient(
            self.openai_client,
            config.azure_openai.embedding_deployment,
            config.azure_openai.embedding_dimensions,
            self.embedding_cache,
            config.retry,
        )
        self.completion_client = CompletionClient(
            self.openai_client,
            config.azure_openai.chat_deployment,
            config.retry,
        )

        self.storage = DocumentStorage(config.ingestion.storage_dir)
        self.catalog = DocumentCatalog()
        self.ingestion = DocumentIngestionPipeline(
            self.embedding_client,
            self.storage,
            self.catalog,
            config.ingestion,
        )

        self.local_store = LocalVectorStore(
            self.catalog,
            self.storage,
            similarity_floor=config.retrieval.similarity_floor,
            read_attempts=config.retrieval.read_retry_attempts,
            read_retry_delay=config.retrieval.read_retry_delay_seconds,
        )
        self.remote_search = RemoteSearchAdapter(
            self.search_client,
            config.azure_ai_search.vector_field,
            config.retry,
            default_score=config.retrieval.remote_default_score,
            timeout_seconds=config.azure_ai_search.timeout_seconds,
        )
        self.retrieval = RetrievalFusionEngine(
            self.embedding_client,
            self.local_store,
            self.remote_search,
            remote_bonus=config.retrieval.remote_bonus,
        )

        self.history = ConversationHistory()
        self.context_builder = ConversationContextBuilder(self.history, config.chat.history_messages)
        self.orchestrator = ChatOrchestrator(
            self.retrieval,
            self.context_builder,
            self.completion_client,
            self.history,
            top_k=config.retrieval.top_k,
            temperature=config.azure_openai.temperature,
        )

        self.index_manager = SearchIndexManager(
            self.index_client,
            config.azure_ai_search.index_name,
            config.azure_openai.embedding_dimensions,
            config.retry,
            vector_field=config.azure_ai_search.vector_field,
        )
        self.health_monitor = HealthMonitor(
            self.embedding_client,
            self.remote_search,
            self.index_manager,
            config.warmup,
        )

        self.cache_sweeper = PeriodicTask(
            name="embedding-cache-sweep",
            interval=config.cache.sweep_interval_seconds,
            action=self.embedding_cache.sweep,
        )

        if telegram_client is None and config.telegram.bot_token:
            telegram_client = TelegramBotClient(config.telegram.bot_token)
        self.telegram_client = telegram_client
        self.telegram_handler = (
            TelegramUpdateHandler(telegram_client, self.orchestrator) if telegram_client else None
        )
        self._polling_task: Optional[asyncio.Task] = None

    async def start(self, warm_up: bool = True) -> None:
        """Load persisted documents, start background tasks and the bot."""
        await self.catalog.rebuild(self.storage)
        self.cache_sweeper.start()

        if warm_up:
            await self.health_monitor.start()

        await self._start_telegram()

    async def _start_telegram(self) -> None:
        if self.telegram_client is None:
            logger.warning("TELEGRAM_BOT_TOKEN not set, Telegram bot disabled")
            return

        telegram = self.config.telegram
        if telegram.mode == "polling":
            poller = TelegramPoller(self.telegram_client, self.telegram_handler)
            self._polling_task = asyncio.create_task(poller.run(), name="telegram-polling")
            return

        if not telegram.webhook_url:
            logger.warning("TELEGRAM_WEBHOOK_URL not set, webhook not registered")
            return
        webhook = telegram.webhook_url.rstrip("/") + telegram.webhook_path
        try:
            await self.telegram_client.set_webhook(webhook)
        except TelegramApiError as e:
            logger.error(f"Failed to register Telegram webhook: {e}")

    async def shutdown(self) -> None:
        """Cancel background tasks and close SDK clients."""
        await self.cache_sweeper.cancel()
        await self.health_monitor.stop()

        if self._polling_task is not None:
            self._polling_task.cancel()
            try:
                await self._polling_task
            except asyncio.CancelledError:
                pass
            self._polling_task = None

        if self.telegram_client is not None:
            await self.telegram_client.aclose()
        await self.search_client.close()
        await self.index_client.close()
        await self.openai_client.close()
        logger.info("Services shut down")
