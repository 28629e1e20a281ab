from __future__ import annotations

import logging
import time
from functools import lru_cache

from app.ai.factory import get_completion_client
from app.ai.types import ChatMessage, CompletionClient
from app.core.config import require_setting, settings
from app.schemas.evaluation import FALLBACK_RESULT, EvaluationResult
from app.services.normalizer import NormalizeFailure, decode_evaluation
from app.services.prompt_builder import build_messages

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


class EvaluationService:
    """Runs one resume evaluation against the completion client.

    ``evaluate`` always returns a well-formed result. Resume text, job
    posting and model output stay in memory and are never logged; only
    event labels are.
    """

    def __init__(self, client: CompletionClient) -> None:
        self._client = client

    def _call(self, messages: list[ChatMessage], attempt: int) -> str | None:
        started = time.perf_counter()
        try:
            content = self._client.complete(messages)
        except Exception as exc:  # noqa: BLE001 - any call failure degrades to the fallback
            logger.warning(
                "evaluation_llm_call_failed attempt=%s error=%s latency_ms=%s",
                attempt,
                type(exc).__name__,
                int((time.perf_counter() - started) * 1000),
            )
            return None
        logger.info(
            "evaluation_llm_call_ok attempt=%s latency_ms=%s",
            attempt,
            int((time.perf_counter() - started) * 1000),
        )
        return content

    def evaluate(self, resume_text: str, job_title: str, job_posting: str) -> EvaluationResult:
        messages, metadata = build_messages(resume_text, job_title, job_posting)
        logger.info(
            "evaluation_started overlay=%s word_count=%s",
            metadata.overlay.value,
            metadata.word_count,
        )

        for attempt in range(1, MAX_ATTEMPTS + 1):
            content = self._call(messages, attempt)
            if content is None:
                # A hard call failure is not retried.
                return FALLBACK_RESULT

            outcome = decode_evaluation(content)
            if isinstance(outcome, NormalizeFailure):
                logger.warning("evaluation_validation_failed attempt=%s reason=%s", attempt, outcome.reason)
                continue
            return outcome.result

        logger.error("evaluation_fallback_returned attempts=%s", MAX_ATTEMPTS)
        return FALLBACK_RESULT


@lru_cache(maxsize=1)
def _service_for_key(api_key: str) -> EvaluationService:
    return EvaluationService(get_completion_client(api_key))


def get_evaluation_service() -> EvaluationService:
    api_key = require_setting(settings.openai_api_key, "OpenAI API key not configured")
    return _service_for_key(api_key)
