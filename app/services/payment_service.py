from __future__ import annotations

import logging
from typing import Protocol

import stripe

from app.core.config import require_setting, settings

logger = logging.getLogger(__name__)

DEFAULT_RETURN_PATH = "/results"
PAID_STATUS = "paid"


class PaymentProviderError(RuntimeError):
    """Checkout creation or session lookup failed at the provider."""


class InvalidReturnPathError(ValueError):
    pass


class PaymentProvider(Protocol):
    def create_checkout_session(self, *, price_id: str, success_url: str, cancel_url: str) -> str: ...

    def retrieve_payment_status(self, session_id: str) -> str: ...


class StripePaymentProvider:
    def __init__(self, secret_key: str):
        self._secret_key = secret_key

    def create_checkout_session(self, *, price_id: str, success_url: str, cancel_url: str) -> str:
        try:
            session = stripe.checkout.Session.create(
                api_key=self._secret_key,
                mode="payment",
                payment_method_types=["card"],
                line_items=[{"price": price_id, "quantity": 1}],
                success_url=success_url,
                cancel_url=cancel_url,
            )
        except stripe.StripeError as exc:
            logger.warning("stripe_checkout_create_failed error=%s", type(exc).__name__)
            raise PaymentProviderError("Failed to create checkout session") from exc
        if not session.url:
            raise PaymentProviderError("Checkout session has no URL")
        return str(session.url)

    def retrieve_payment_status(self, session_id: str) -> str:
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self._secret_key)
        except stripe.StripeError as exc:
            logger.warning("stripe_session_retrieve_failed error=%s", type(exc).__name__)
            raise PaymentProviderError("Verification failed") from exc
        return str(session.payment_status or "")


def get_payment_provider() -> PaymentProvider:
    secret_key = require_setting(settings.stripe_secret_key, "Stripe not configured")
    return StripePaymentProvider(secret_key)


def resolve_return_path(return_path: str | None) -> str:
    if not return_path:
        return DEFAULT_RETURN_PATH
    if not return_path.startswith("/") or return_path.startswith("//"):
        raise InvalidReturnPathError("returnPath must be a site-relative path")
    return return_path


def checkout_urls(app_url: str, return_path: str | None) -> tuple[str, str]:
    base = app_url.rstrip("/") + resolve_return_path(return_path)
    success_url = f"{base}?session_id={{CHECKOUT_SESSION_ID}}"
    cancel_url = f"{base}?canceled=true"
    return success_url, cancel_url


def start_checkout(provider: PaymentProvider, return_path: str | None) -> str:
    price_id = require_setting(settings.stripe_price_id, "Stripe price not configured")
    app_url = require_setting(settings.app_url, "App URL not configured")
    success_url, cancel_url = checkout_urls(app_url, return_path)
    return provider.create_checkout_session(price_id=price_id, success_url=success_url, cancel_url=cancel_url)


def is_session_paid(provider: PaymentProvider, session_id: str) -> bool:
    return provider.retrieve_payment_status(session_id) == PAID_STATUS
