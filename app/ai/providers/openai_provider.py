from __future__ import annotations

import os
from typing import Optional, Sequence

from openai import OpenAI, OpenAIError

from app.ai.types import ChatMessage, CompletionError


class OpenAIProvider:
    """JSON-mode chat completions.

    SDK-level retries are off: the evaluation service owns the retry policy
    and allows at most two calls per request.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        temperature: float = 0.3,
        max_output_tokens: int = 1000,
    ):
        self._model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
        if not key:
            raise RuntimeError("OPENAI_API_KEY is missing")

        self._client = OpenAI(
            api_key=key,
            base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
            timeout=timeout_s,
            max_retries=0,
        )

    def complete(self, messages: Sequence[ChatMessage]) -> str:
        payload = [{"role": m.role, "content": m.content} for m in messages]
        try:
            response = self._client.chat.completions.create(
                model=self._model,
                messages=payload,
                temperature=self._temperature,
                max_tokens=self._max_output_tokens,
                response_format={"type": "json_object"},
            )
        except OpenAIError as exc:
            raise CompletionError(type(exc).__name__) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise CompletionError("empty_response")
        return content
