"""Configuration module for the Telegram RAG bot.

Loads settings from environment-specific config files:
- APP_ENV=dev  → config_dev.yaml
- APP_ENV=test → config_test.yaml
- Default      → config.yaml

API keys and endpoints are loaded from the .env file.
Fails fast with clear error messages if required configuration is missing.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_project_root() -> Path:
    """Get the project root directory (where config.yaml lives)."""
    # Navigate from ragbot/config/ up to project root
    return Path(__file__).parent.parent.parent


def _get_config_filename() -> str:
    """Get config filename based on APP_ENV environment variable.

    Returns:
        Config filename:
        - APP_ENV=dev  → config_dev.yaml
        - APP_ENV=test → config_test.yaml
        - Default      → config.yaml
    """
    app_env = os.environ.get("APP_ENV", "").lower()

    if app_env == "dev":
        return "config_dev.yaml"
    elif app_env == "test":
        return "config_test.yaml"
    else:
        return "config.yaml"


def _load_yaml_config() -> dict:
    """Load configuration from environment-specific config file."""
    config_filename = _get_config_filename()
    config_path = _get_project_root() / config_filename

    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}. "
            f"Set APP_ENV to 'dev' or 'test', or create {config_filename}."
        )

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def _get_required_env(key: str) -> str:
    """Get required environment variable or raise ConfigurationError."""
    value = os.environ.get(key)
    if not value:
        raise ConfigurationError(
            f"Required environment variable '{key}' is not set. "
            f"Please add it to your .env file."
        )
    return value


def _get_optional_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get optional environment variable with default."""
    return os.environ.get(key, default)


@dataclass(frozen=True)
class AzureOpenAIConfig:
    """Azure OpenAI configuration (chat + embedding deployments)."""
    api_key: str
    endpoint: str
    api_version: str
    chat_deployment: str
    embedding_deployment: str
    embedding_dimensions: int
    temperature: float
    timeout_seconds: float


@dataclass(frozen=True)
class AzureAISearchConfig:
    """Azure AI Search configuration."""
    api_key: str
    endpoint: str
    index_name: str
    vector_field: str
    timeout_seconds: float


@dataclass(frozen=True)
class TelegramConfig:
    """Telegram transport configuration. The bot is disabled without a token."""
    bot_token: Optional[str]
    mode: str  # "webhook" or "polling"
    webhook_url: Optional[str]
    webhook_path: str


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server configuration."""
    host: str
    port: int


@dataclass(frozen=True)
class IngestionConfig:
    """Document upload and chunking configuration."""
    storage_dir: str
    chunk_size: int
    chunk_overlap: int
    min_chunk_length: int
    embedding_batch_size: int
    max_upload_bytes: int


@dataclass(frozen=True)
class RetrievalConfig:
    """Hybrid retrieval and fusion configuration."""
    top_k: int
    similarity_floor: float
    remote_default_score: float
    remote_bonus: float
    read_retry_attempts: int
    read_retry_delay_seconds: float


@dataclass(frozen=True)
class CacheConfig:
    """Embedding cache configuration."""
    max_entries: int
    eviction_fraction: float
    sweep_interval_seconds: float


@dataclass(frozen=True)
class ChatConfig:
    """Conversation configuration."""
    history_messages: int


@dataclass(frozen=True)
class RetryConfig:
    """Retry policy shared by every upstream call site."""
    max_attempts: int
    initial_backoff_seconds: float
    max_backoff_seconds: float
    jitter_seconds: float


@dataclass(frozen=True)
class WarmupConfig:
    """Startup warm-up and background health check configuration."""
    stabilization_delay_seconds: float
    retry_delay_seconds: float
    health_check_interval_seconds: float


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""
    level: str


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration container."""
    azure_openai: AzureOpenAIConfig
    azure_ai_search: AzureAISearchConfig
    telegram: TelegramConfig
    server: ServerConfig
    ingestion: IngestionConfig
    retrieval: RetrievalConfig
    cache: CacheConfig
    chat: ChatConfig
    retry: RetryConfig
    warmup: WarmupConfig
    logging: LoggingConfig


def _validate(config: AppConfig) -> None:
    """Check cross-field constraints that the YAML schema cannot express."""
    ingestion = config.ingestion
    if ingestion.chunk_size <= 0:
        raise ConfigurationError("ingestion.chunk_size must be positive")
    if not 0 <= ingestion.chunk_overlap < ingestion.chunk_size:
        raise ConfigurationError(
            "ingestion.chunk_overlap must be >= 0 and smaller than ingestion.chunk_size"
        )
    if ingestion.embedding_batch_size <= 0:
        raise ConfigurationError("ingestion.embedding_batch_size must be positive")
    if not 0 < config.cache.eviction_fraction <= 1:
        raise ConfigurationError("cache.eviction_fraction must be in (0, 1]")
    if config.retry.max_attempts < 1:
        raise ConfigurationError("retry.max_attempts must be at least 1")
    if config.telegram.mode not in ("webhook", "polling"):
        raise ConfigurationError("telegram.mode must be 'webhook' or 'polling'")


def load_config() -> AppConfig:
    """
    Load and validate all application configuration.

    Loads from config.yaml for non-sensitive settings and .env for API keys.
    Fails fast if required configuration is missing.

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    # Load environment variables from .env file
    load_dotenv()

    # Load YAML configuration
    yaml_config = _load_yaml_config()

    # Build Azure OpenAI config
    openai_section = yaml_config.get("azure_openai", {})
    embedding_section = openai_section.get("embedding_model", {})

    azure_openai_config = AzureOpenAIConfig(
        api_key=_get_required_env("AZURE_OPENAI_API_KEY"),
        endpoint=openai_section.get("endpoint") or _get_required_env("AZURE_OPENAI_ENDPOINT"),
        api_version=openai_section.get("api_version", "2024-06-01"),
        chat_deployment=openai_section.get("chat_deployment", "gpt-4o"),
        embedding_deployment=embedding_section.get("deployment", "text-embedding-3-small"),
        embedding_dimensions=embedding_section.get("dimensions", 1536),
        temperature=openai_section.get("temperature", 0.2),
        timeout_seconds=openai_section.get("timeout_seconds", 30),
    )

    # Build Azure AI Search config
    ai_search_section = yaml_config.get("ai_search", {})

    azure_ai_search_config = AzureAISearchConfig(
        api_key=_get_required_env("AZURE_SEARCH_API_KEY"),
        endpoint=ai_search_section.get("endpoint") or _get_required_env("AZURE_SEARCH_ENDPOINT"),
        index_name=ai_search_section.get("index_name") or _get_required_env("AZURE_SEARCH_INDEX"),
        vector_field=ai_search_section.get("vector_field", "contentVector"),
        timeout_seconds=ai_search_section.get("timeout_seconds", 30),
    )

    # Build Telegram config
    telegram_section = yaml_config.get("telegram", {})

    telegram_config = TelegramConfig(
        bot_token=_get_optional_env("TELEGRAM_BOT_TOKEN"),
        mode=telegram_section.get("mode", "webhook"),
        webhook_url=_get_optional_env("TELEGRAM_WEBHOOK_URL", telegram_section.get("webhook_url")),
        webhook_path=telegram_section.get("webhook_path", "/webhook"),
    )

    server_section = yaml_config.get("server", {})

    server_config = ServerConfig(
        host=server_section.get("host", "0.0.0.0"),
        port=int(_get_optional_env("PORT", str(server_section.get("port", 3000)))),
    )

    ingestion_section = yaml_config.get("ingestion", {})

    ingestion_config = IngestionConfig(
        storage_dir=ingestion_section.get("storage_dir", "data/documents"),
        chunk_size=ingestion_section.get("chunk_size", 1000),
        chunk_overlap=ingestion_section.get("chunk_overlap", 200),
        min_chunk_length=ingestion_section.get("min_chunk_length", 50),
        embedding_batch_size=ingestion_section.get("embedding_batch_size", 5),
        max_upload_bytes=ingestion_section.get("max_upload_bytes", 10 * 1024 * 1024),
    )

    retrieval_section = yaml_config.get("retrieval", {})

    retrieval_config = RetrievalConfig(
        top_k=retrieval_section.get("top_k", 4),
        similarity_floor=retrieval_section.get("similarity_floor", 0.1),
        remote_default_score=retrieval_section.get("remote_default_score", 0.5),
        remote_bonus=retrieval_section.get("remote_bonus", 0.01),
        read_retry_attempts=retrieval_section.get("read_retry_attempts", 3),
        read_retry_delay_seconds=retrieval_section.get("read_retry_delay_seconds", 0.1),
    )

    cache_section = yaml_config.get("cache", {})

    cache_config = CacheConfig(
        max_entries=cache_section.get("max_entries", 1000),
        eviction_fraction=cache_section.get("eviction_fraction", 0.2),
        sweep_interval_seconds=cache_section.get("sweep_interval_seconds", 300),
    )

    chat_section = yaml_config.get("chat", {})

    chat_config = ChatConfig(
        history_messages=chat_section.get("history_messages", 4),
    )

    retry_section = yaml_config.get("retry", {})

    retry_config = RetryConfig(
        max_attempts=retry_section.get("max_attempts", 3),
        initial_backoff_seconds=retry_section.get("initial_backoff_seconds", 1),
        max_backoff_seconds=retry_section.get("max_backoff_seconds", 10),
        jitter_seconds=retry_section.get("jitter_seconds", 1),
    )

    warmup_section = yaml_config.get("warmup", {})

    warmup_config = WarmupConfig(
        stabilization_delay_seconds=warmup_section.get("stabilization_delay_seconds", 5),
        retry_delay_seconds=warmup_section.get("retry_delay_seconds", 30),
        health_check_interval_seconds=warmup_section.get("health_check_interval_seconds", 120),
    )

    # Build Logging config
    logging_section = yaml_config.get("logging", {})

    logging_config = LoggingConfig(
        level=logging_section.get("level", "INFO"),
    )

    config = AppConfig(
        azure_openai=azure_openai_config,
        azure_ai_search=azure_ai_search_config,
        telegram=telegram_config,
        server=server_config,
        ingestion=ingestion_config,
        retrieval=retrieval_config,
        cache=cache_config,
        chat=chat_config,
        retry=retry_config,
        warmup=warmup_config,
        logging=logging_config,
    )
    _validate(config)
    return config


# Module-level singleton for convenience
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the application configuration singleton.

    Lazy-loads configuration on first access.
    Config file is selected based on APP_ENV environment variable.

    Returns:
        AppConfig: Application configuration.

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the config singleton. Useful for testing."""
    global _config
    _config = None
