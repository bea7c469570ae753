"""Prompt assembly for retrieval-augmented chat."""

import re
from typing import List, Sequence

from ragbot.models import SYSTEM_ROLE, USER_ROLE, ChatMessage, RetrievedPassage
from ragbot.services.conversation_history import ConversationHistory

SYSTEM_PROMPT = (
    "You are a helpful, concise assistant on Telegram. "
    "Prefer short, clear answers. Cite sources when provided."
)

SOURCES_INSTRUCTION = (
    "SOURCES below are excerpts from your knowledge base. When answering, "
    "(a) rely primarily on SOURCES, (b) quote concisely if helpful, and "
    "(c) cite like [#1]. If insufficient, say you do not know."
)

NO_SOURCES = "No relevant sources found."
UNTITLED = "Untitled"

_CITATION = re.compile(r"\[#(\d+)\]")


def format_passages(passages: Sequence[RetrievedPassage]) -> str:
    """Render passages as the SOURCES system message, numbered from 1."""
    if not passages:
        return f"SOURCES:\n{NO_SOURCES}"

    blocks = [
        f"[#{position}] {passage.title or UNTITLED}\n{passage.content}\nSource: {passage.url}"
        for position, passage in enumerate(passages, start=1)
    ]
    return "SOURCES:\n" + "\n\n".join(blocks)


def parse_cited_sources(reply_text: str, passages: Sequence[RetrievedPassage]) -> List[RetrievedPassage]:
    """Map ``[#n]`` markers in a reply back to passages, in first-citation order."""
    cited: List[RetrievedPassage] = []
    seen = set()
    for match in _CITATION.finditer(reply_text or ""):
        position = int(match.group(1))
        if position in seen or not 1 <= position <= len(passages):
            continue
        seen.add(position)
        cited.append(passages[position - 1])
    return cited


class ConversationContextBuilder:
    """Builds the message list sent to the chat model.

    Order: system prompt, source instruction, SOURCES, recent history,
    then the new user message.
    """

    def __init__(self, history: ConversationHistory, history_messages: int = 4):
        self._history = history
        self._history_messages = history_messages

    def build_prompt(
        self,
        conversation_id: str,
        user_text: str,
        passages: Sequence[RetrievedPassage],
    ) -> List[ChatMessage]:
        messages = [
            ChatMessage(role=SYSTEM_ROLE, content=SYSTEM_PROMPT),
            ChatMessage(role=SYSTEM_ROLE, content=SOURCES_INSTRUCTION),
            ChatMessage(role=SYSTEM_ROLE, content=format_passages(passages)),
        ]
        messages.extend(self._history.recent(conversation_id, self._history_messages))
        messages.append(ChatMessage(role=USER_ROLE, content=user_text))
        return messages
