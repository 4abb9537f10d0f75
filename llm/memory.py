"""
Per-user conversation memory.

Histories live for the life of the process. Each user also gets an
asyncio.Lock so one user's turns are applied in order even when requests
overlap.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List

USER_ROLE = "user"
ASSISTANT_ROLE = "assistant"


@dataclass
class ChatTurn:
    role: str
    content: str


@dataclass
class ConversationHistory:
    messages: List[ChatTurn] = field(default_factory=list)

    def add_user_message(self, content: str) -> None:
        self.messages.append(ChatTurn(USER_ROLE, content))

    def add_ai_message(self, content: str) -> None:
        self.messages.append(ChatTurn(ASSISTANT_ROLE, content))

    def __len__(self) -> int:
        return len(self.messages)

    def recent(self, max_turns: int = 0) -> List[ChatTurn]:
        """
        Last ``max_turns`` exchanges (a user message plus the reply).
        ``max_turns <= 0`` returns the full history.
        """
        if max_turns <= 0:
            return list(self.messages)
        return list(self.messages[-2 * max_turns:])

    def as_chat_messages(self, max_turns: int = 0) -> List[Dict[str, str]]:
        return [{"role": t.role, "content": t.content} for t in self.recent(max_turns)]


class ConversationStore:
    """user id -> ConversationHistory, get-or-create, no eviction."""

    def __init__(self) -> None:
        self._histories: Dict[str, ConversationHistory] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def get_history(self, user_id: str) -> ConversationHistory:
        history = self._histories.get(user_id)
        if history is None:
            history = ConversationHistory()
            self._histories[user_id] = history
        return history

    def lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock

    def user_ids(self) -> List[str]:
        return list(self._histories)

    def __len__(self) -> int:
        return len(self._histories)
