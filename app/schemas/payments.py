from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CheckoutRequest(_CamelModel):
    return_path: str | None = Field(default=None, max_length=200)


class CheckoutResponse(_CamelModel):
    checkout_url: str


class VerifyPaymentResponse(_CamelModel):
    success: bool
    day_pass_token: str
    expires_in: str


class DayPassStatusResponse(_CamelModel):
    active: bool
    expires_at: int | None = None
