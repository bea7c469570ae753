"""Azure AI Search index management for the knowledge base index."""

import asyncio
import logging

from azure.core.exceptions import AzureError, ResourceNotFoundError
from azure.search.documents.indexes.aio import SearchIndexClient
from azure.search.documents.indexes.models import (
    HnswAlgorithmConfiguration,
    SearchField,
    SearchFieldDataType,
    SearchIndex,
    VectorSearch,
    VectorSearchProfile,
)

from ragbot.clients.azure_clients import create_search_index_client
from ragbot.clients.retry import call_with_retry, is_transient_azure_error
from ragbot.config.configuration import RetryConfig, get_config

logger = logging.getLogger(__name__)

HNSW_ALGORITHM_NAME = "myHnsw"
HNSW_PROFILE_NAME = "myHnswProfile"


class SearchIndexError(Exception):
    """Raised when the search index cannot be inspected or created."""
    pass


def build_index_definition(
    index_name: str,
    dimensions: int,
    vector_field: str = "contentVector",
) -> SearchIndex:
    """
    Build the knowledge base index schema.

    The index supports hybrid search (text + vector) with the following fields:
    - id: Unique identifier for each chunk
    - title: Source document title
    - url: Source locator shown to users
    - content: Chunk text
    - contentVector: Embedding vector for semantic search
    """
    fields = [
        SearchField(
            name="id",
            type=SearchFieldDataType.String,
            key=True,
            filterable=True,
        ),
        SearchField(
            name="title",
            type=SearchFieldDataType.String,
            searchable=True,
            filterable=True,
            sortable=True,
        ),
        SearchField(
            name="url",
            type=SearchFieldDataType.String,
            filterable=True,
        ),
        SearchField(
            name="content",
            type=SearchFieldDataType.String,
            searchable=True,
        ),
        SearchField(
            name=vector_field,
            type=SearchFieldDataType.Collection(SearchFieldDataType.Single),
            searchable=True,
            vector_search_dimensions=dimensions,
            vector_search_profile_name=HNSW_PROFILE_NAME,
        ),
    ]

    vector_search = VectorSearch(
        algorithms=[
            HnswAlgorithmConfiguration(name=HNSW_ALGORITHM_NAME),
        ],
        profiles=[
            VectorSearchProfile(
                name=HNSW_PROFILE_NAME,
                algorithm_configuration_name=HNSW_ALGORITHM_NAME,
            ),
        ],
    )

    return SearchIndex(
        name=index_name,
        fields=fields,
        vector_search=vector_search,
    )


class SearchIndexManager:
    """Checks for, creates and deletes the remote index."""

    def __init__(
        self,
        index_client: SearchIndexClient,
        index_name: str,
        dimensions: int,
        retry_config: RetryConfig,
        vector_field: str = "contentVector",
    ):
        self._client = index_client
        self._index_name = index_name
        self._dimensions = dimensions
        self._retry_config = retry_config
        self._vector_field = vector_field

    @property
    def index_name(self) -> str:
        return self._index_name

    async def ensure_index(self) -> bool:
        """
        Make sure the index exists, creating it if absent.

        Returns:
            True if the index was created, False if it already existed.

        Raises:
            SearchIndexError: If the index cannot be checked or created.
        """
        try:
            await call_with_retry(
                lambda: self._client.get_index(self._index_name),
                self._retry_config,
                is_transient=is_transient_azure_error,
                operation_name="Index lookup",
            )
            logger.debug(f"Index '{self._index_name}' exists")
            return False
        except ResourceNotFoundError:
            logger.info(f"Index '{self._index_name}' not found, creating it")
        except AzureError as e:
            raise SearchIndexError(f"Failed to check index '{self._index_name}': {e}") from e

        await self.create_or_update_index()
        return True

    async def create_or_update_index(self) -> None:
        """
        Create or update the index with the current schema.

        Raises:
            SearchIndexError: If the service rejects the definition.
        """
        index = build_index_definition(self._index_name, self._dimensions, self._vector_field)
        try:
            result = await call_with_retry(
                lambda: self._client.create_or_update_index(index),
                self._retry_config,
                is_transient=is_transient_azure_error,
                operation_name="Index creation",
            )
            logger.info(f"Index '{result.name}' created/updated successfully")
        except AzureError as e:
            logger.error(f"Failed to create index: {e}")
            raise SearchIndexError(f"Failed to create index '{self._index_name}': {e}") from e

    async def delete_index(self) -> None:
        """
        Delete the index.

        Raises:
            SearchIndexError: If deletion fails.
        """
        try:
            await self._client.delete_index(self._index_name)
            logger.info(f"Index '{self._index_name}' deleted successfully")
        except AzureError as e:
            logger.error(f"Failed to delete index: {e}")
            raise SearchIndexError(f"Failed to delete index '{self._index_name}': {e}") from e


async def _main() -> None:
    config = get_config()
    index_client = create_search_index_client(config)
    async with index_client:
        manager = SearchIndexManager(
            index_client,
            config.azure_ai_search.index_name,
            config.azure_openai.embedding_dimensions,
            config.retry,
            vector_field=config.azure_ai_search.vector_field,
        )
        await manager.create_or_update_index()
        print(f"Index '{manager.index_name}' created/updated successfully")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_main())
