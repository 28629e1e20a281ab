import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    temperature: float
    max_output_tokens: int
    timeout_s: float


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", "openai").strip().lower()
    model = os.getenv("AI_MODEL", "gpt-4o-mini").strip()
    return AIConfig(
        provider=provider,
        model=model,
        temperature=float(os.getenv("AI_TEMPERATURE", "0.3")),
        max_output_tokens=int(os.getenv("AI_MAX_OUTPUT_TOKENS", "1000")),
        timeout_s=float(os.getenv("OPENAI_TIMEOUT_S", "30")),
    )
