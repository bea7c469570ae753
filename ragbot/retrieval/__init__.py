"""Hybrid retrieval: local vector store, remote index and fusion."""

from ragbot.retrieval.fusion import RetrievalFusionEngine
from ragbot.retrieval.local_store import LocalVectorStore, cosine_similarity
from ragbot.retrieval.remote_search import RemoteSearchAdapter

__all__ = [
    "RetrievalFusionEngine",
    "LocalVectorStore",
    "cosine_similarity",
    "RemoteSearchAdapter",
]
