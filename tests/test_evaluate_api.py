import dataclasses
import json
import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")

from fastapi.testclient import TestClient  # noqa: E402

from app.core.access_control import AccessController  # noqa: E402
from app.core.rate_limit import get_access_controller  # noqa: E402
from app.core.rate_limit_store import MemoryRateLimitStore  # noqa: E402
from app.core.security import create_day_pass_token, verify_day_pass_token  # noqa: E402
from app.main import app  # noqa: E402
from app.services import evaluation_service  # noqa: E402
from app.services.evaluation_service import EvaluationService, get_evaluation_service  # noqa: E402

SECRET = "test-signing-secret-with-enough-length"

MODEL_REPLY = json.dumps(
    {
        "verdict": "Weak",
        "ats_score": 142,
        "keyword_gaps": [
            {"keyword": "Spark", "status": "missing"},
            {"keyword": "Airflow", "status": "weak"},
        ],
        "improvement_suggestions": ["Mention Spark projects"],
    }
)


class StaticClient:
    def __init__(self, reply):
        self.reply = reply
        self.calls = 0

    def complete(self, messages):
        self.calls += 1
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


class EvaluateApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)
        cls.body = {
            "resumeText": (
                "Data engineer with five years of Python and SQL, building batch pipelines "
                "for retail analytics and reporting."
            ),
            "jobTitle": "Data Engineer",
            "jobPosting": (
                "We need a data engineer experienced with Spark, Airflow, Python and SQL to build and "
                "operate reliable batch and streaming pipelines for our analytics platform."
            ),
        }

    def setUp(self):
        self.completion = StaticClient(MODEL_REPLY)
        self.controller = AccessController(
            MemoryRateLimitStore(),
            lambda token: verify_day_pass_token(token, SECRET),
        )
        app.dependency_overrides[get_evaluation_service] = lambda: EvaluationService(self.completion)
        app.dependency_overrides[get_access_controller] = lambda: self.controller

    def tearDown(self):
        app.dependency_overrides.clear()

    def _post(self, body=None, headers=None):
        return self.client.post("/v1/evaluate", json=self.body if body is None else body, headers=headers or {})

    def test_returns_normalized_result_with_quota_header(self):
        response = self._post(headers={"X-Forwarded-For": "203.0.113.10"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["verdict"], "Weak")
        self.assertEqual(body["atsScore"], 100)
        self.assertEqual(len(body["keywordGaps"]), 5)
        self.assertEqual(body["keywordGaps"][2], {"keyword": "No additional keyword identified", "status": "missing"})
        self.assertEqual(len(body["improvementSuggestions"]), 3)
        self.assertEqual(response.headers["X-RateLimit-Remaining"], "9")

    def test_model_failure_still_returns_fallback_shape(self):
        self.completion.reply = "The model refused to answer."
        response = self._post()
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["verdict"], "Borderline")
        self.assertEqual(body["atsScore"], 50)
        self.assertEqual(len(body["keywordGaps"]), 5)
        self.assertEqual(len(body["improvementSuggestions"]), 3)
        self.assertEqual(self.completion.calls, 2)

    def test_legacy_resume_field(self):
        body = dict(self.body)
        body["resume"] = body.pop("resumeText")
        self.assertEqual(self._post(body=body).status_code, 200)

    def test_validation_errors_are_400(self):
        response = self._post(body={**self.body, "jobTitle": "X"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Job title too short (min 2 characters)")
        self.assertEqual(self.completion.calls, 0)

    def test_invalid_json_is_400(self):
        response = self.client.post(
            "/v1/evaluate",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Invalid request body")

    def test_eleventh_request_is_rate_limited(self):
        headers = {"X-Forwarded-For": "198.51.100.20, 10.0.0.1"}
        for _ in range(10):
            self.assertEqual(self._post(headers=headers).status_code, 200)

        response = self._post(headers=headers)
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.headers["X-RateLimit-Remaining"], "0")
        retry_after = int(response.headers["Retry-After"])
        self.assertTrue(0 < retry_after <= 60)
        self.assertIn("X-RateLimit-Reset", response.headers)
        self.assertEqual(self.completion.calls, 10)

    def test_day_pass_bypasses_rate_limit(self):
        headers = {"X-Forwarded-For": "198.51.100.30"}
        for _ in range(11):
            self._post(headers=headers)

        token = create_day_pass_token("cs_test_paid", SECRET)
        response = self._post(headers={**headers, "Authorization": f"Bearer {token}"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["X-RateLimit-Remaining"], "-1")

    def test_bad_token_is_treated_as_anonymous(self):
        response = self._post(headers={"Authorization": "Bearer forged.token.value", "X-Real-IP": "192.0.2.50"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers["X-RateLimit-Remaining"], "9")

    def test_unexpected_failure_is_generic_500(self):
        class ExplodingService:
            def evaluate(self, *args):
                raise RuntimeError("resume text leaked here")

        app.dependency_overrides[get_evaluation_service] = lambda: ExplodingService()
        response = self._post()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "Failed to evaluate resume. Please try again.")
        self.assertNotIn("leaked", response.text)

    def test_missing_api_key_is_configuration_error(self):
        app.dependency_overrides.pop(get_evaluation_service, None)
        patched = dataclasses.replace(evaluation_service.settings, openai_api_key=None)
        with patch.object(evaluation_service, "settings", patched):
            response = self._post()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["detail"], "OpenAI API key not configured")


class HealthApiTests(unittest.TestCase):
    def test_health(self):
        response = TestClient(app).get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy"})


if __name__ == "__main__":
    unittest.main()
