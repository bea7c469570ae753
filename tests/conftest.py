"""Shared fixtures and in-process fakes for the SDK clients.

No test talks to the network: Azure OpenAI, Azure AI Search and Telegram are
replaced by small fakes that record calls and can be told to fail.
"""

import hashlib
import re
from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional, Union

import httpx
import openai
import pytest
from azure.core.exceptions import ResourceNotFoundError

from ragbot.clients.telegram_client import TelegramApiError
from ragbot.config.configuration import (
    AppConfig,
    AzureAISearchConfig,
    AzureOpenAIConfig,
    CacheConfig,
    ChatConfig,
    IngestionConfig,
    LoggingConfig,
    RetrievalConfig,
    RetryConfig,
    ServerConfig,
    TelegramConfig,
    WarmupConfig,
)

EMBEDDING_DIMENSIONS = 256

_TOKEN = re.compile(r"\w+")
_FAKE_REQUEST = httpx.Request("POST", "https://example.openai.azure.com/openai")


def fake_embedding(text: str, dimensions: int = EMBEDDING_DIMENSIONS) -> List[float]:
    """Signed feature-hashing bag of words: shared words raise cosine similarity."""
    vector = [0.0] * dimensions
    for token in _TOKEN.findall(text.lower()):
        digest = hashlib.md5(token.encode()).digest()
        index = int.from_bytes(digest[:4], "big") % dimensions
        vector[index] += 1.0 if digest[4] % 2 == 0 else -1.0
    return vector


def connection_error() -> openai.APIConnectionError:
    return openai.APIConnectionError(request=_FAKE_REQUEST)


def server_error(status: int = 500) -> openai.InternalServerError:
    return openai.InternalServerError(
        "server error",
        response=httpx.Response(status, request=_FAKE_REQUEST),
        body=None,
    )


def bad_request_error() -> openai.BadRequestError:
    return openai.BadRequestError(
        "bad request",
        response=httpx.Response(400, request=_FAKE_REQUEST),
        body=None,
    )


class FakeEmbeddings:
    """Stands in for ``AsyncAzureOpenAI.embeddings``."""

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS):
        self.dimensions = dimensions
        self.calls: List[str] = []
        self.failures: List[Exception] = []  # Raised, in order, by the next calls
        self.fail_markers: List[str] = []  # Texts containing a marker always fail
        self.responses: List[Any] = []  # Raw responses returned, in order, before real vectors

    async def create(self, input, model, dimensions=None):
        text = input[0]
        self.calls.append(text)
        if self.failures:
            raise self.failures.pop(0)
        if any(marker in text for marker in self.fail_markers):
            raise connection_error()
        if self.responses:
            return self.responses.pop(0)
        return SimpleNamespace(data=[SimpleNamespace(embedding=fake_embedding(text, self.dimensions))])


class FakeChatCompletions:
    """Stands in for ``AsyncAzureOpenAI.chat.completions``."""

    def __init__(self):
        self.reply: Union[Optional[str], Callable[[List[Dict[str, str]]], Optional[str]]] = "Answer [#1]"
        self.calls: List[Dict[str, Any]] = []
        self.failures: List[Exception] = []
        self.always_fail: Optional[Callable[[], Exception]] = None
        self.empty_choices = False

    async def create(self, model, messages, temperature):
        self.calls.append({"model": model, "messages": messages, "temperature": temperature})
        if self.always_fail is not None:
            raise self.always_fail()
        if self.failures:
            raise self.failures.pop(0)
        if self.empty_choices:
            return SimpleNamespace(choices=[])
        content = self.reply(messages) if callable(self.reply) else self.reply
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAIClient:
    """Stands in for ``AsyncAzureOpenAI``."""

    def __init__(self, dimensions: int = EMBEDDING_DIMENSIONS):
        self.embeddings = FakeEmbeddings(dimensions)
        self.chat = SimpleNamespace(completions=FakeChatCompletions())
        self.closed = False

    async def close(self):
        self.closed = True


class FakeSearchResults:
    """Async iterable like the paged results of ``SearchClient.search``."""

    def __init__(self, documents):
        self._documents = list(documents)

    async def __aiter__(self):
        for document in self._documents:
            yield document


class FakeSearchClient:
    """Stands in for ``azure.search.documents.aio.SearchClient``."""

    def __init__(self, documents: Optional[List[Dict[str, Any]]] = None):
        self.documents = documents or []
        self.calls: List[Dict[str, Any]] = []
        self.uploaded: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None
        self.failures: List[Exception] = []
        self.closed = False

    async def search(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.failures:
            raise self.failures.pop(0)
        return FakeSearchResults(self.documents[: kwargs.get("top") or len(self.documents)])

    async def merge_or_upload_documents(self, documents):
        self.uploaded.extend(documents)
        return [SimpleNamespace(key=d["id"], succeeded=True) for d in documents]

    async def close(self):
        self.closed = True


class FakeIndexClient:
    """Stands in for ``azure.search.documents.indexes.aio.SearchIndexClient``."""

    def __init__(self, exists: bool = True):
        self.exists = exists
        self.created: List[Any] = []
        self.deleted: List[str] = []
        self.error: Optional[Exception] = None
        self.closed = False

    async def get_index(self, name):
        if self.error is not None:
            raise self.error
        if not self.exists:
            raise ResourceNotFoundError(f"Index {name} not found")
        return SimpleNamespace(name=name)

    async def create_or_update_index(self, index):
        self.created.append(index)
        self.exists = True
        return index

    async def delete_index(self, name):
        self.deleted.append(name)
        self.exists = False

    async def close(self):
        self.closed = True


class FakeTelegramTransport:
    """Records Bot API calls made by the update handler."""

    def __init__(self, reject_markdown: bool = False):
        self.reject_markdown = reject_markdown
        self.messages: List[Dict[str, Any]] = []
        self.actions: List[Dict[str, Any]] = []
        self.webhooks: List[str] = []
        self.closed = False

    async def send_message(self, chat_id, text, parse_mode=None):
        if parse_mode and self.reject_markdown:
            raise TelegramApiError("Bad Request: can't parse entities")
        self.messages.append({"chat_id": chat_id, "text": text, "parse_mode": parse_mode})

    async def send_chat_action(self, chat_id, action="typing"):
        self.actions.append({"chat_id": chat_id, "action": action})

    async def set_webhook(self, url):
        self.webhooks.append(url)

    async def delete_webhook(self):
        pass

    async def get_updates(self, offset=None, timeout=30):
        return []

    async def aclose(self):
        self.closed = True

    @property
    def texts(self) -> List[str]:
        return [m["text"] for m in self.messages]


def make_config(storage_dir: str, **overrides) -> AppConfig:
    """Build a test configuration with zero backoff and short delays."""
    sections = dict(
        azure_openai=AzureOpenAIConfig(
            api_key="test-openai-key",
            endpoint="https://example.openai.azure.com",
            api_version="2024-06-01",
            chat_deployment="gpt-4o",
            embedding_deployment="text-embedding-3-small",
            embedding_dimensions=EMBEDDING_DIMENSIONS,
            temperature=0.2,
            timeout_seconds=5,
        ),
        azure_ai_search=AzureAISearchConfig(
            api_key="test-search-key",
            endpoint="https://example.search.windows.net",
            index_name="botdocs",
            vector_field="contentVector",
            timeout_seconds=5,
        ),
        telegram=TelegramConfig(
            bot_token="123:test",
            mode="webhook",
            webhook_url="https://bot.example.com",
            webhook_path="/webhook",
        ),
        server=ServerConfig(host="127.0.0.1", port=3000),
        ingestion=IngestionConfig(
            storage_dir=storage_dir,
            chunk_size=1000,
            chunk_overlap=200,
            min_chunk_length=50,
            embedding_batch_size=5,
            max_upload_bytes=1024 * 1024,
        ),
        retrieval=RetrievalConfig(
            top_k=4,
            similarity_floor=0.1,
            remote_default_score=0.5,
            remote_bonus=0.01,
            read_retry_attempts=3,
            read_retry_delay_seconds=0,
        ),
        cache=CacheConfig(max_entries=1000, eviction_fraction=0.2, sweep_interval_seconds=300),
        chat=ChatConfig(history_messages=4),
        retry=RetryConfig(
            max_attempts=3,
            initial_backoff_seconds=0,
            max_backoff_seconds=0,
            jitter_seconds=0,
        ),
        warmup=WarmupConfig(
            stabilization_delay_seconds=0,
            retry_delay_seconds=0.01,
            health_check_interval_seconds=0.01,
        ),
        logging=LoggingConfig(level="DEBUG"),
    )
    sections.update(overrides)
    return AppConfig(**sections)


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return make_config(str(tmp_path / "documents"))


@pytest.fixture
def retry_config(app_config) -> RetryConfig:
    return app_config.retry


@pytest.fixture
def fake_openai() -> FakeOpenAIClient:
    return FakeOpenAIClient()


@pytest.fixture
def fake_search() -> FakeSearchClient:
    return FakeSearchClient()


@pytest.fixture
def fake_index() -> FakeIndexClient:
    return FakeIndexClient()


@pytest.fixture
def fake_transport() -> FakeTelegramTransport:
    return FakeTelegramTransport()


@pytest.fixture
def container(app_config, fake_openai, fake_search, fake_index, fake_transport):
    """A fully wired ServiceContainer backed by fakes."""
    from ragbot.container import ServiceContainer

    return ServiceContainer(
        app_config,
        openai_client=fake_openai,
        search_client=fake_search,
        index_client=fake_index,
        telegram_client=fake_transport,
    )
