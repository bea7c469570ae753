"""Per-conversation message history (process lifetime only)."""

from typing import Dict, List

from ragbot.models import ASSISTANT_ROLE, USER_ROLE, ChatMessage


class ConversationHistory:
    """Stores the full message list per conversation id.

    Storage is unbounded; callers read only a recent window into prompts.
    """

    def __init__(self):
        self._messages: Dict[str, List[ChatMessage]] = {}

    def get(self, conversation_id: str) -> List[ChatMessage]:
        return list(self._messages.get(conversation_id, []))

    def recent(self, conversation_id: str, limit: int) -> List[ChatMessage]:
        """Return the last ``limit`` messages, oldest first."""
        if limit <= 0:
            return []
        return list(self._messages.get(conversation_id, [])[-limit:])

    def append_exchange(self, conversation_id: str, user_text: str, reply_text: str) -> None:
        messages = self._messages.setdefault(conversation_id, [])
        messages.append(ChatMessage(role=USER_ROLE, content=user_text))
        messages.append(ChatMessage(role=ASSISTANT_ROLE, content=reply_text))

    def reset(self, conversation_id: str) -> None:
        self._messages.pop(conversation_id, None)

    def count(self, conversation_id: str) -> int:
        return len(self._messages.get(conversation_id, []))
