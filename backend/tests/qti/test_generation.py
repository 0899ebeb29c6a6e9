"""Tests for the batch generation service."""

import pytest

from qtibridge.schemas.question import (
    GenerationStatus,
    GenerationSummary,
    ItemType,
    ItemValidationStatus,
)
from qtibridge.services.qti import generation
from qtibridge.services.qti.generation import (
    GENERATION_ERROR,
    INVALID_STATUS,
    UNSUPPORTED_TYPE,
    generate_batch_report,
    generate_qti_batch,
    generate_qti_for_question,
    generate_qti_for_upload,
    validate_questions_for_generation,
)
from tests.helpers.factories import make_question


class TestGenerateForQuestion:
    def test_success(self, question):
        result = generate_qti_for_question(question)

        assert result.error is None
        assert result.question.generation_status == GenerationStatus.SUCCESS
        assert "<value>A</value>" in result.question.generated_output
        assert question.generation_status == GenerationStatus.PENDING

    @pytest.mark.parametrize("status", [ItemValidationStatus.CAUTION, ItemValidationStatus.REJECTED])
    def test_non_valid_status_is_skipped(self, status):
        result = generate_qti_for_question(make_question(validation_status=status))

        assert result.error.code == INVALID_STATUS
        assert result.question.generation_status == GenerationStatus.FAILED
        assert result.question.generated_output is None

    @pytest.mark.parametrize("item_type", [ItemType.MSQ, ItemType.SHORT_ANSWER, ItemType.ORDER])
    def test_unsupported_type(self, item_type):
        result = generate_qti_for_question(make_question(type=item_type))

        assert result.error.code == UNSUPPORTED_TYPE
        assert "only MCQ" in result.error.message

    def test_builder_error_keeps_its_code(self):
        result = generate_qti_for_question(make_question(correct_answer="Z", options=["Yes", "No"]))

        assert result.error.code == "ANSWER_OUT_OF_RANGE"
        assert result.question.generation_errors == [result.error]

    def test_unexpected_exception_is_contained(self, question, monkeypatch):
        def explode(q, version):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(generation, "generate_and_validate_mcq", explode)
        result = generate_qti_for_question(question)

        assert result.error.code == GENERATION_ERROR
        assert result.error.message == "disk on fire"
        assert result.error.details == {"type": "RuntimeError"}


class TestBatch:
    def test_one_bad_item_in_three(self):
        questions = [
            make_question(id="q1", identifier="q1"),
            make_question(id="q2", identifier="q2", correct_answer="Z"),
            make_question(id="q3", identifier="q3", correct_answer="3"),
        ]

        results, summary = generate_qti_batch(questions)

        assert (summary.total, summary.success, summary.failed) == (3, 2, 1)
        assert len(summary.errors) == 1
        assert summary.errors[0].question_id == "q2"
        assert [r.question.generation_status for r in results] == [
            GenerationStatus.SUCCESS,
            GenerationStatus.FAILED,
            GenerationStatus.SUCCESS,
        ]

    def test_empty_batch(self):
        results, summary = generate_qti_batch([])

        assert results == []
        assert summary.total == 0
        assert summary.success_rate == 0.0

    def test_version_is_passed_through(self, question):
        results, _ = generate_qti_batch([question], version="2.2")
        assert "imsqti_v2p2" in results[0].question.generated_output

    def test_for_upload_returns_summary(self, question):
        summary = generate_qti_for_upload([question, make_question(stem="")])

        assert summary.success == 1
        assert summary.errors[0].error.code == "MISSING_STEM"


class TestReport:
    def test_clean_batch(self):
        report = generate_batch_report(GenerationSummary(total=4, success=4, failed=0))

        assert report.splitlines() == [
            "QTI Generation Report",
            "=" * 50,
            "Total Questions: 4",
            "Successfully Generated: 4",
            "Failed: 0",
            "Success Rate: 100.00%",
        ]

    def test_errors_are_listed(self):
        _, summary = generate_qti_batch(
            [make_question(id="q1"), make_question(id="q2", identifier="q2", correct_answer="Z")]
        )
        report = generate_batch_report(summary)

        assert "Success Rate: 50.00%" in report
        assert "Errors:" in report
        assert "Question ID: q2" in report
        assert "Code: ANSWER_OUT_OF_RANGE" in report

    def test_empty_batch_rate(self):
        report = generate_batch_report(GenerationSummary(total=0, success=0, failed=0))
        assert "Success Rate: 0.00%" in report


class TestPreflight:
    def test_all_eligible(self, question):
        assert validate_questions_for_generation([question]) == (True, [])

    def test_problems_are_reported(self):
        question = make_question(
            identifier="bad",
            type=ItemType.MSQ,
            validation_status=ItemValidationStatus.CAUTION,
            options=["Only"],
            correct_answer="",
        )
        ok, errors = validate_questions_for_generation([question])

        assert not ok
        assert errors == [
            "Question bad: Invalid validation status 'Caution'",
            "Question bad: Unsupported type 'MSQ' (only MCQ supported)",
            "Question bad: Insufficient options (need at least 2)",
            "Question bad: No correct answer specified",
        ]
