import json
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from fastapi.concurrency import run_in_threadpool

from app.core.access_control import AccessController, RateLimited, bearer_token, client_address
from app.core.rate_limit import get_access_controller
from app.schemas.evaluation import EvaluationResult
from app.services.evaluation_service import EvaluationService, get_evaluation_service
from app.services.request_boundary import extract_input, validate_input

logger = logging.getLogger(__name__)

router = APIRouter()

RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again in a moment."
GENERIC_FAILURE_MESSAGE = "Failed to evaluate resume. Please try again."


def _enforce_access(request: Request, controller: AccessController, authorization: str | None) -> int:
    decision = controller.authorize(client_address(request.headers), bearer_token(authorization))
    if isinstance(decision, RateLimited):
        retry_after = str(decision.retry_after_seconds)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=RATE_LIMITED_MESSAGE,
            headers={
                "Retry-After": retry_after,
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": retry_after,
            },
        )
    return decision.remaining


async def _read_json(request: Request):
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request body") from exc


@router.post("/evaluate", response_model=EvaluationResult)
async def evaluate(
    request: Request,
    response: Response,
    authorization: str | None = Header(default=None),
    service: EvaluationService = Depends(get_evaluation_service),
    controller: AccessController = Depends(get_access_controller),
):
    remaining = _enforce_access(request, controller, authorization)

    body = await _read_json(request)
    validation = validate_input(body)
    if not validation.valid:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=validation.error)

    payload = extract_input(body)
    if payload is None:
        logger.error("evaluation_extract_failed_after_validation")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=GENERIC_FAILURE_MESSAGE)

    try:
        result = await run_in_threadpool(
            service.evaluate,
            payload.resume_text,
            payload.job_title,
            payload.job_posting,
        )
    except Exception as exc:  # noqa: BLE001 - never leak internals to the caller
        logger.error("evaluation_unexpected_error error=%s", type(exc).__name__)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=GENERIC_FAILURE_MESSAGE,
        ) from None

    response.headers["X-RateLimit-Remaining"] = str(remaining)
    return result
