from __future__ import annotations

from functools import lru_cache

from slowapi import Limiter
from fastapi import Request

from app.core.access_control import AccessController, client_address
from app.core.config import settings
from app.core.rate_limit_store import MemoryRateLimitStore, RateLimitStore, SqliteRateLimitStore
from app.core.security import verify_day_pass_token


def _limiter_key(request: Request) -> str:
    return client_address(request.headers)


limiter = Limiter(key_func=_limiter_key)


def rate_limit():
    """slowapi limit for the payment routes."""
    if settings.rate_limit_enabled:
        return limiter.limit(settings.rate_limit)

    def decorator(func):
        return func

    return decorator


def build_rate_limit_store() -> RateLimitStore:
    if settings.rate_limit_backend == "sqlite":
        return SqliteRateLimitStore(settings.rate_limit_db_path)
    return MemoryRateLimitStore()


@lru_cache(maxsize=1)
def get_access_controller() -> AccessController:
    return AccessController(
        build_rate_limit_store(),
        lambda token: verify_day_pass_token(token, settings.token_secret),
        max_requests=settings.evaluate_rate_limit_max,
        window_seconds=settings.evaluate_rate_limit_window_s,
        sweep_threshold=settings.rate_limit_sweep_threshold,
    )
