"""Retrieved passage model shared by the local store and the remote index."""

from dataclasses import dataclass
from enum import Enum


class PassageSource(str, Enum):
    """Where a passage was retrieved from."""

    REMOTE_INDEX = "azure"
    LOCAL_STORE = "uploaded"


@dataclass(frozen=True)
class RetrievedPassage:
    """A single retrieval hit. Produced per query, never persisted."""

    title: str
    url: str  # Remote URL or uploaded://<doc_id>
    content: str
    source: PassageSource
    score: float

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "url": self.url,
            "content": self.content,
            "source": self.source.value,
            "score": self.score,
        }
