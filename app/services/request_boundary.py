from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.schemas.evaluation import EvaluationRequest

MIN_RESUME_LENGTH = 50
MAX_RESUME_LENGTH = 15_000
MIN_JOB_TITLE_LENGTH = 2
MAX_JOB_TITLE_LENGTH = 100
MIN_JOB_POSTING_LENGTH = 100
MAX_JOB_POSTING_LENGTH = 20_000


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    error: str | None = None


def _fields(body: dict[str, Any]) -> tuple[Any, Any, Any]:
    # "resume" is the legacy name for "resumeText".
    resume_text = body.get("resumeText")
    if resume_text is None:
        resume_text = body.get("resume")
    return resume_text, body.get("jobTitle"), body.get("jobPosting")


def _invalid(error: str) -> ValidationResult:
    return ValidationResult(valid=False, error=error)


def validate_input(body: Any) -> ValidationResult:
    if not isinstance(body, dict):
        return _invalid("Invalid request body")

    resume_text, job_title, job_posting = _fields(body)

    if not resume_text or not isinstance(resume_text, str):
        return _invalid("Resume text is required")
    if not job_title or not isinstance(job_title, str):
        return _invalid("Job title is required")
    if not job_posting or not isinstance(job_posting, str):
        return _invalid("Job posting is required")

    resume_len = len(resume_text.strip())
    title_len = len(job_title.strip())
    posting_len = len(job_posting.strip())

    if resume_len < MIN_RESUME_LENGTH:
        return _invalid(f"Resume too short (min {MIN_RESUME_LENGTH} characters)")
    if title_len < MIN_JOB_TITLE_LENGTH:
        return _invalid(f"Job title too short (min {MIN_JOB_TITLE_LENGTH} characters)")
    if posting_len < MIN_JOB_POSTING_LENGTH:
        return _invalid(f"Job posting too short (min {MIN_JOB_POSTING_LENGTH} characters)")

    if resume_len > MAX_RESUME_LENGTH:
        return _invalid(f"Resume too long (max {MAX_RESUME_LENGTH} characters)")
    if title_len > MAX_JOB_TITLE_LENGTH:
        return _invalid(f"Job title too long (max {MAX_JOB_TITLE_LENGTH} characters)")
    if posting_len > MAX_JOB_POSTING_LENGTH:
        return _invalid(f"Job posting too long (max {MAX_JOB_POSTING_LENGTH} characters)")

    return ValidationResult(valid=True)


def extract_input(body: Any) -> EvaluationRequest | None:
    """Trimmed request fields, or ``None`` when a field is absent or not a string."""
    if not isinstance(body, dict):
        return None

    resume_text, job_title, job_posting = _fields(body)
    if not isinstance(resume_text, str) or not isinstance(job_title, str) or not isinstance(job_posting, str):
        return None

    return EvaluationRequest(
        resume_text=resume_text.strip(),
        job_title=job_title.strip(),
        job_posting=job_posting.strip(),
    )
