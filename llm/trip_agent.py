"""
Trip chat agent: answers questions over the uploaded trip data using RAG.

Retrieves the trips nearest to the question from the published snapshot,
grounds the prompt on them, replays the user's recent conversation, and
records the new exchange in that user's history.
"""

from __future__ import annotations

import datetime as dt
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from app import config
from llm.client import LLMClient
from llm.index import TripDocument
from llm.memory import ConversationStore
from llm.prompts import TRIP_DATA_SYSTEM_PROMPT, build_trip_user_prompt
from trips.store import TripSnapshot, TripStore

logger = logging.getLogger(__name__)


class IndexNotReadyError(ValueError):
    """Raised when a question arrives before any workbook was ingested."""


@dataclass
class TripChatResult:
    """Structured result from the trip chat agent."""

    answer: str
    contexts: List[Dict[str, Any]] = field(default_factory=list)


def serialize_context(documents: List[TripDocument]) -> str:
    """One JSON line per retrieved trip, in ranked order."""
    lines = []
    for doc in documents:
        payload: Any = doc.metadata if doc.metadata else doc.text
        lines.append(json.dumps(payload, default=str))
    return "\n".join(lines)


class TripChatAgent:
    """
    Agent that answers questions using the indexed trip records.

    answer(question, user_id, top_k) returns the answer text plus the trip
    rows used to ground it.
    """

    def __init__(
        self,
        store: TripStore,
        conversations: ConversationStore,
        client_factory: Callable[[], Any] = LLMClient,
        model: str | None = None,
        memory_max_turns: int | None = None,
    ) -> None:
        self.store = store
        self.conversations = conversations
        self._client_factory = client_factory
        self.model = model or config.LLM_MODEL
        self.memory_max_turns = config.MEMORY_MAX_TURNS if memory_max_turns is None else memory_max_turns

    def validate(self, question: str | None, user_id: str | None) -> TripSnapshot:
        """Check preconditions; returns the snapshot the answer will be built on."""
        snapshot = self.store.snapshot
        if snapshot is None:
            raise IndexNotReadyError("No data uploaded yet")
        if not question or not question.strip() or not user_id or not user_id.strip():
            raise ValueError("Both question and userId are required")
        return snapshot

    async def answer(
        self,
        question: str | None,
        user_id: str | None,
        top_k: int | None = None,
    ) -> TripChatResult:
        """
        Answer ``question`` for ``user_id``.

        Raises:
            IndexNotReadyError: no workbook has been ingested yet.
            ValueError: question or user id missing.
        Provider and index failures propagate unchanged.
        """
        snapshot = self.validate(question, user_id)
        k = config.CHAT_TOP_K if top_k is None else top_k

        async with self.conversations.lock_for(user_id):
            history = self.conversations.get_history(user_id)

            documents = await snapshot.index.query(question, k)
            context = serialize_context(documents)
            now_iso = dt.datetime.now(dt.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
            prompt = build_trip_user_prompt(question=question, context=context, now_iso=now_iso)

            messages = [{"role": "system", "content": TRIP_DATA_SYSTEM_PROMPT.strip()}]
            messages.extend(history.as_chat_messages(self.memory_max_turns))
            messages.append({"role": "user", "content": prompt})

            client = self._client_factory()
            raw_answer = await client.chat(model=self.model, messages=messages, temperature=0)
            # Strip markdown bold for consistent plain-text display
            answer_text = (raw_answer or "").replace("**", "")

            history.add_user_message(question)
            history.add_ai_message(answer_text)

        logger.debug(
            "Answered question for user %s with %d context rows (history %d messages)",
            user_id,
            len(documents),
            len(history),
        )

        return TripChatResult(
            answer=answer_text,
            contexts=[
                {"row_index": d.row_index, "metadata": d.metadata, "text": d.text}
                for d in documents
            ],
        )
