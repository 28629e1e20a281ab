from app.ai.config import load_ai_config
from app.core.config import ConfigurationError
from app.ai.types import CompletionClient

from app.ai.providers.openai_provider import OpenAIProvider


def get_completion_client(api_key: str) -> CompletionClient:
    cfg = load_ai_config()

    if cfg.provider == "openai":
        return OpenAIProvider(
            model=cfg.model,
            api_key=api_key,
            timeout_s=cfg.timeout_s,
            temperature=cfg.temperature,
            max_output_tokens=cfg.max_output_tokens,
        )

    raise ConfigurationError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
