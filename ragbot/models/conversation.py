"""Conversation models."""

from dataclasses import dataclass, field
from typing import Dict, List

from ragbot.models.passage import RetrievedPassage

SYSTEM_ROLE = "system"
USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """A role-tagged message as sent to the chat completion API."""

    role: str
    content: str

    def to_openai(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ChatReply:
    """Reply produced by the chat orchestrator."""

    text: str
    passages: List[RetrievedPassage] = field(default_factory=list)  # Offered to the model
    cited: List[RetrievedPassage] = field(default_factory=list)  # Cited as [#n] in text
