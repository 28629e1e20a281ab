from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Mapping, Union

from app.core.rate_limit_store import RateLimitStore
from app.core.security import DayPassPayload

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass(frozen=True)
class Allowed:
    premium: bool
    remaining: int


@dataclass(frozen=True)
class RateLimited:
    retry_after_seconds: int


AccessDecision = Union[Allowed, RateLimited]


def client_address(headers: Mapping[str, str]) -> str:
    forwarded_for = (headers.get("x-forwarded-for") or "").strip()
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first
    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip
    return UNKNOWN_CLIENT


def bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


class AccessController:
    """Gatekeeper for the evaluation endpoint.

    A verified day pass is let through without touching the store. Everyone
    else shares a fixed window per client address.
    """

    def __init__(
        self,
        store: RateLimitStore,
        token_verifier: Callable[[str], DayPassPayload | None],
        *,
        max_requests: int = 10,
        window_seconds: int = 60,
        sweep_threshold: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self._verify = token_verifier
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.sweep_threshold = sweep_threshold
        self._clock = clock

    def has_day_pass(self, token: str | None) -> bool:
        if not token:
            return False
        return self._verify(token) is not None

    def authorize(self, client: str, token: str | None = None) -> AccessDecision:
        if self.has_day_pass(token):
            return Allowed(premium=True, remaining=-1)

        now = self._clock()
        if len(self.store) > self.sweep_threshold:
            removed = self.store.sweep(now)
            logger.info("rate_limit_sweep removed=%s", removed)

        entry = self.store.increment(client, now, self.window_seconds)
        reset_in = max(1, math.ceil(entry.window_reset_at - now))
        if entry.count > self.max_requests:
            logger.info("rate_limit_exceeded")
            return RateLimited(retry_after_seconds=reset_in)
        return Allowed(
            premium=False,
            remaining=self.max_requests - entry.count,
        )

    def sweep(self) -> int:
        return self.store.sweep(self._clock())
