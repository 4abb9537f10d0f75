from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from groq import Groq

from app import config


class LLMClient:
    """
    Thin async wrapper around the underlying LLM provider.

    This implementation uses Groq's API via the `groq` Python client.
    """

    def __init__(self, api_key: str | None = None) -> None:
        api_key = api_key or config.GROQ_API_KEY
        if not api_key:
            raise RuntimeError(
                "Missing GROQ_API_KEY environment variable. "
                "Set it in .env or your environment for the Groq API."
            )
        self._client = Groq(api_key=api_key)

    async def chat(
        self,
        model: str,
        messages: List[Dict[str, str]],
        **kwargs: Any,
    ) -> str:
        """
        Chat completion over a full message list; returns the assistant's content.
        """

        def _generate() -> str:
            params: dict[str, Any] = {
                "model": model,
                "messages": messages,
            }
            if "temperature" in kwargs and kwargs["temperature"] is not None:
                params["temperature"] = kwargs.pop("temperature")
            params.update(kwargs)

            response = self._client.chat.completions.create(**params)
            if not response.choices:
                return ""
            return (response.choices[0].message.content or "").strip()

        return await asyncio.to_thread(_generate)
