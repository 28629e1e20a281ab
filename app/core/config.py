from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


class ConfigurationError(RuntimeError):
    """A setting required by the current endpoint is missing."""


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    openai_api_key: str | None
    stripe_secret_key: str | None
    stripe_price_id: str | None
    app_url: str | None
    token_secret: str | None
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    cors_allow_credentials: bool
    rate_limit: str
    rate_limit_enabled: bool
    evaluate_rate_limit_max: int
    evaluate_rate_limit_window_s: int
    rate_limit_sweep_threshold: int
    rate_limit_sweep_interval_s: int
    rate_limit_backend: str
    rate_limit_db_path: str


settings = Settings(
    openai_api_key=_get_env("OPENAI_API_KEY"),
    stripe_secret_key=_get_env("STRIPE_SECRET_KEY"),
    stripe_price_id=_get_env("STRIPE_PRICE_ID"),
    app_url=_get_env("APP_URL", _get_env("NEXT_PUBLIC_APP_URL")),
    token_secret=_get_env("TOKEN_SECRET"),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    cors_allow_credentials=_get_env_bool("CORS_ALLOW_CREDENTIALS", False),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    evaluate_rate_limit_max=_get_env_int("EVALUATE_RATE_LIMIT_MAX", 10),
    evaluate_rate_limit_window_s=_get_env_int("EVALUATE_RATE_LIMIT_WINDOW_S", 60),
    rate_limit_sweep_threshold=_get_env_int("RATE_LIMIT_SWEEP_THRESHOLD", 10_000),
    rate_limit_sweep_interval_s=_get_env_int("RATE_LIMIT_SWEEP_INTERVAL_S", 300),
    rate_limit_backend=(_get_env("RATE_LIMIT_BACKEND", "memory") or "memory").lower(),
    rate_limit_db_path=_get_env("RATE_LIMIT_DB_PATH", "data/rate_limit.db") or "data/rate_limit.db",
)

if settings.rate_limit_backend not in {"memory", "sqlite"}:
    raise RuntimeError("RATE_LIMIT_BACKEND must be either 'memory' or 'sqlite'.")


def require_setting(value: str | None, message: str) -> str:
    if not value:
        raise ConfigurationError(message)
    return value
