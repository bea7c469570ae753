"""Configuration module."""

from ragbot.config.configuration import (
    AppConfig,
    AzureAISearchConfig,
    AzureOpenAIConfig,
    CacheConfig,
    ChatConfig,
    ConfigurationError,
    IngestionConfig,
    LoggingConfig,
    RetrievalConfig,
    RetryConfig,
    ServerConfig,
    TelegramConfig,
    WarmupConfig,
    get_config,
    load_config,
    reset_config,
)

__all__ = [
    "AppConfig",
    "AzureAISearchConfig",
    "AzureOpenAIConfig",
    "CacheConfig",
    "ChatConfig",
    "ConfigurationError",
    "IngestionConfig",
    "LoggingConfig",
    "RetrievalConfig",
    "RetryConfig",
    "ServerConfig",
    "TelegramConfig",
    "WarmupConfig",
    "get_config",
    "load_config",
    "reset_config",
]
