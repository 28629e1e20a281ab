from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status

from app.core.config import require_setting, settings
from app.core.access_control import bearer_token
from app.core.rate_limit import rate_limit
from app.core.security import DAY_PASS_EXPIRES_IN, create_day_pass_token, verify_day_pass_token
from app.schemas.payments import (
    CheckoutRequest,
    CheckoutResponse,
    DayPassStatusResponse,
    VerifyPaymentResponse,
)
from app.services.payment_service import (
    InvalidReturnPathError,
    PaymentProvider,
    PaymentProviderError,
    get_payment_provider,
    is_session_paid,
    start_checkout,
)

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse)
@rate_limit()
async def create_checkout(
    request: Request,
    payload: CheckoutRequest | None = None,
    provider: PaymentProvider = Depends(get_payment_provider),
):
    _ = request
    return_path = payload.return_path if payload else None
    try:
        checkout_url = start_checkout(provider, return_path)
    except InvalidReturnPathError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except PaymentProviderError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create checkout session",
        ) from exc
    return CheckoutResponse(checkout_url=checkout_url)


@router.get("/verify-payment", response_model=VerifyPaymentResponse)
@rate_limit()
async def verify_payment(
    request: Request,
    session_id: str | None = Query(default=None),
    provider: PaymentProvider = Depends(get_payment_provider),
):
    _ = request
    if not session_id or not session_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing session ID")

    try:
        paid = is_session_paid(provider, session_id.strip())
    except PaymentProviderError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Verification failed") from exc
    if not paid:
        raise HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail="Payment not completed")

    secret = require_setting(settings.token_secret, "Token signing secret not configured")
    token = create_day_pass_token(session_id.strip(), secret)
    return VerifyPaymentResponse(success=True, day_pass_token=token, expires_in=DAY_PASS_EXPIRES_IN)


@router.get("/day-pass", response_model=DayPassStatusResponse)
async def day_pass_status(authorization: str | None = Header(default=None)):
    payload = verify_day_pass_token(bearer_token(authorization), settings.token_secret)
    if payload is None:
        return DayPassStatusResponse(active=False)
    return DayPassStatusResponse(active=True, expires_at=payload.expires_at)
