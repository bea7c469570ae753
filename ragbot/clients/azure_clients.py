"""Factory functions for the Azure SDK clients."""

from azure.core.credentials import AzureKeyCredential
from azure.search.documents.aio import SearchClient as AsyncSearchClient
from azure.search.documents.indexes.aio import SearchIndexClient as AsyncSearchIndexClient
from openai import AsyncAzureOpenAI

from ragbot.config.configuration import AppConfig


def create_openai_client(config: AppConfig) -> AsyncAzureOpenAI:
    """Create the async Azure OpenAI client used for embeddings and chat.

    SDK-level retries are disabled; retries are handled by ``call_with_retry``.
    """
    return AsyncAzureOpenAI(
        api_key=config.azure_openai.api_key,
        azure_endpoint=config.azure_openai.endpoint,
        api_version=config.azure_openai.api_version,
        timeout=config.azure_openai.timeout_seconds,
        max_retries=0,
    )


def create_search_client(config: AppConfig) -> AsyncSearchClient:
    """Create Azure AI Search async client for the knowledge base index."""
    return AsyncSearchClient(
        endpoint=config.azure_ai_search.endpoint,
        index_name=config.azure_ai_search.index_name,
        credential=AzureKeyCredential(config.azure_ai_search.api_key),
    )


def create_search_index_client(config: AppConfig) -> AsyncSearchIndexClient:
    """Create Azure AI Search async client for index management."""
    return AsyncSearchIndexClient(
        endpoint=config.azure_ai_search.endpoint,
        credential=AzureKeyCredential(config.azure_ai_search.api_key),
    )
