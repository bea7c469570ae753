"""Startup warm-up and background health checks for upstream services."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from ragbot.clients.embedding_client import EmbeddingClient
from ragbot.config.configuration import WarmupConfig
from ragbot.ingestion.search_index import SearchIndexManager
from ragbot.retrieval.remote_search import RemoteSearchAdapter
from ragbot.services.scheduler import PeriodicTask

logger = logging.getLogger(__name__)

AZURE_OPENAI = "azure_openai"
AZURE_SEARCH = "azure_search"
SEARCH_INDEX = "search_index"

WARMUP_TEXT = "test"


def format_uptime(seconds: float) -> str:
    """Format a duration as ``"1h 1m 1s"``."""
    total = int(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours}h {minutes}m {secs}s"


class HealthMonitor:
    """Checks that Azure OpenAI, Azure AI Search and the index are usable.

    ``warm_up`` makes one real call per upstream and never raises.
    ``start`` runs it once at startup. When everything answers, it waits a
    fixed stabilization delay before reporting ready. When something
    does not, the process is reported ready anyway and a recovery task keeps
    re-checking until all services are healthy.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient,
        remote_search: RemoteSearchAdapter,
        index_manager: SearchIndexManager,
        warmup_config: WarmupConfig,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._embedding_client = embedding_client
        self._remote_search = remote_search
        self._index_manager = index_manager
        self._config = warmup_config
        self._sleep = sleep

        self._started_at = time.monotonic()
        self._ready = False
        self._services: Dict[str, bool] = {AZURE_OPENAI: False, AZURE_SEARCH: False, SEARCH_INDEX: False}
        self._last_checked: Optional[datetime] = None
        self._recovery_task: Optional[PeriodicTask] = None

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def all_healthy(self) -> bool:
        return all(self._services.values())

    def uptime_seconds(self) -> float:
        return time.monotonic() - self._started_at

    async def warm_up(self) -> Dict[str, bool]:
        """
        Probe every upstream once.

        Returns:
            Mapping of service name to readiness.
        """
        logger.info("Warming up upstream services")
        azure_openai, azure_search, search_index = await asyncio.gather(
            self._check(AZURE_OPENAI, self._check_openai),
            self._check(AZURE_SEARCH, self._remote_search.ping),
            self._check(SEARCH_INDEX, self._index_manager.ensure_index),
        )
        self._services = {
            AZURE_OPENAI: azure_openai,
            AZURE_SEARCH: azure_search,
            SEARCH_INDEX: search_index,
        }
        self._last_checked = datetime.now(timezone.utc)

        status = ", ".join(f"{name}={'ok' if ok else 'failed'}" for name, ok in self._services.items())
        logger.info(f"Warm-up results: {status}")
        return dict(self._services)

    async def _check_openai(self) -> None:
        await self._embedding_client.embed(WARMUP_TEXT, use_cache=False)

    async def _check(self, name: str, probe: Callable[[], Awaitable[Any]]) -> bool:
        try:
            await probe()
            return True
        except Exception as e:
            logger.warning(f"Warm-up check '{name}' failed: {e}")
            return False

    async def start(self) -> Dict[str, bool]:
        """Run the startup warm-up; schedule recovery checks if anything failed."""
        results = await self.warm_up()

        if all(results.values()):
            logger.info(
                f"All services ready, waiting {self._config.stabilization_delay_seconds}s to stabilize"
            )
            await self._sleep(self._config.stabilization_delay_seconds)
        else:
            logger.warning("Some services are not ready, starting background health checks")
            self._recovery_task = PeriodicTask(
                name="health-recovery",
                interval=self._config.health_check_interval_seconds,
                action=self._recovery_check,
                initial_delay=self._config.retry_delay_seconds,
            )
            self._recovery_task.start()

        self._ready = True
        return results

    async def _recovery_check(self) -> bool:
        await self.warm_up()
        if self.all_healthy:
            logger.info("All services healthy, stopping background health checks")
            return True
        return False

    @property
    def recovering(self) -> bool:
        return self._recovery_task is not None and self._recovery_task.running

    async def stop(self) -> None:
        if self._recovery_task is not None:
            await self._recovery_task.cancel()
            self._recovery_task = None

    def snapshot(self) -> Dict[str, Any]:
        return {
            "ready": self._ready,
            "services": dict(self._services),
            "last_checked": self._last_checked.isoformat() if self._last_checked else None,
            "uptime": format_uptime(self.uptime_seconds()),
        }
