import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.services.request_boundary import extract_input, validate_input  # noqa: E402


def _body(**overrides):
    body = {
        "resumeText": "r" * 80,
        "jobTitle": "Data Engineer",
        "jobPosting": "p" * 150,
    }
    body.update(overrides)
    return body


class RequestBoundaryTests(unittest.TestCase):
    def test_valid_body(self):
        self.assertTrue(validate_input(_body()).valid)

    def test_resume_length_boundary(self):
        short = validate_input(_body(resumeText="  " + "r" * 49 + "  "))
        self.assertFalse(short.valid)
        self.assertEqual(short.error, "Resume too short (min 50 characters)")
        self.assertTrue(validate_input(_body(resumeText="  " + "r" * 50 + "  ")).valid)

    def test_job_title_length_boundary(self):
        short = validate_input(_body(jobTitle=" Q "))
        self.assertFalse(short.valid)
        self.assertEqual(short.error, "Job title too short (min 2 characters)")
        self.assertTrue(validate_input(_body(jobTitle="QA")).valid)

    def test_job_posting_minimum(self):
        result = validate_input(_body(jobPosting="p" * 99))
        self.assertEqual(result.error, "Job posting too short (min 100 characters)")

    def test_upper_bounds(self):
        self.assertEqual(
            validate_input(_body(resumeText="r" * 15001)).error,
            "Resume too long (max 15000 characters)",
        )
        self.assertTrue(validate_input(_body(resumeText="r" * 15000)).valid)
        self.assertEqual(
            validate_input(_body(jobTitle="t" * 101)).error,
            "Job title too long (max 100 characters)",
        )
        self.assertEqual(
            validate_input(_body(jobPosting="p" * 20001)).error,
            "Job posting too long (max 20000 characters)",
        )

    def test_missing_and_non_string_fields(self):
        self.assertEqual(validate_input(_body(resumeText=None)).error, "Resume text is required")
        self.assertEqual(validate_input(_body(jobTitle=12)).error, "Job title is required")
        self.assertEqual(validate_input(_body(jobPosting="")).error, "Job posting is required")

    def test_non_object_body(self):
        for body in (None, [], "text", 5):
            self.assertEqual(validate_input(body).error, "Invalid request body")
        self.assertEqual(validate_input([1, 2]).error, "Invalid request body")

    def test_empty_object_reports_missing_resume(self):
        result = validate_input({})
        self.assertFalse(result.valid)
        self.assertEqual(result.error, "Resume text is required")

    def test_legacy_resume_field_is_accepted(self):
        body = _body()
        body["resume"] = body.pop("resumeText")
        self.assertTrue(validate_input(body).valid)
        self.assertEqual(extract_input(body).resume_text, "r" * 80)

    def test_extract_trims_all_fields(self):
        request = extract_input(_body(resumeText="  " + "r" * 60 + "\n", jobTitle=" Data Engineer ", jobPosting="\t" + "p" * 120))
        self.assertEqual(request.resume_text, "r" * 60)
        self.assertEqual(request.job_title, "Data Engineer")
        self.assertEqual(request.job_posting, "p" * 120)

    def test_extract_returns_none_for_missing_or_non_string(self):
        self.assertIsNone(extract_input(_body(jobTitle=None)))
        self.assertIsNone(extract_input(_body(jobPosting=["p"])))
        self.assertIsNone(extract_input("not a dict"))


if __name__ == "__main__":
    unittest.main()
