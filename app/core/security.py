from __future__ import annotations

import logging
import time

import jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.core.config import ConfigurationError

logger = logging.getLogger(__name__)

DAY_PASS_TTL_SECONDS = 24 * 60 * 60
DAY_PASS_EXPIRES_IN = "24 hours"
_ALGORITHM = "HS256"


class DayPassPayload(BaseModel):
    """Claims carried by a day-pass token. Timestamps are epoch milliseconds."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    session_id: str = Field(alias="sessionId", min_length=1)
    purchased_at: int = Field(alias="purchasedAt", ge=0)
    expires_at: int = Field(alias="expiresAt", ge=0)


def _now_ms() -> int:
    return int(time.time() * 1000)


def create_day_pass_token(session_id: str, secret: str | None, *, now_ms: int | None = None) -> str:
    if not secret:
        raise ConfigurationError("Token signing secret not configured")

    purchased_at = _now_ms() if now_ms is None else now_ms
    expires_at = purchased_at + DAY_PASS_TTL_SECONDS * 1000
    claims = {
        "sessionId": session_id,
        "purchasedAt": purchased_at,
        "expiresAt": expires_at,
        "exp": expires_at // 1000,
    }
    return jwt.encode(claims, secret, algorithm=_ALGORITHM)


def verify_day_pass_token(token: str | None, secret: str | None, *, now_ms: int | None = None) -> DayPassPayload | None:
    """Return the payload of a valid, unexpired token, otherwise ``None``.

    A missing secret, a bad signature, a malformed payload and an expired
    pass all read as "no day pass"; callers fall back to rate limiting.
    """
    if not token or not secret:
        return None

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[_ALGORITHM],
            options={"require": ["exp"]},
        )
        payload = DayPassPayload.model_validate(claims)
    except (jwt.PyJWTError, ValidationError):
        logger.info("day_pass_verification_failed")
        return None

    current = _now_ms() if now_ms is None else now_ms
    if payload.expires_at < current:
        logger.info("day_pass_expired")
        return None
    return payload
