"""
QTI generation service.

Runs the MCQ builder over canonical questions, one item at a time, and
aggregates the outcomes. A failing item is recorded and the batch carries on.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from qtibridge.core.logging import get_logger
from qtibridge.schemas.question import (
    GenerationError,
    GenerationErrorEntry,
    GenerationStatus,
    GenerationSummary,
    ItemType,
    ItemValidationStatus,
    Question,
)
from qtibridge.services.qti.mcq_builder import generate_and_validate_mcq

logger = get_logger(__name__)

REPORT_RULE_WIDTH = 50

# Error codes (stable)
INVALID_STATUS = "INVALID_STATUS"
UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
GENERATION_ERROR = "GENERATION_ERROR"


@dataclass(frozen=True)
class QuestionGenerationResult:
    """Question after a generation attempt, plus the error when it failed."""

    question: Question
    error: GenerationError | None = None


def _failed(question: Question, error: GenerationError) -> QuestionGenerationResult:
    updated = question.model_copy(
        update={
            "generation_status": GenerationStatus.FAILED,
            "generation_errors": [error],
        }
    )
    return QuestionGenerationResult(question=updated, error=error)


def generate_qti_for_question(question: Question, version: str = "2.1") -> QuestionGenerationResult:
    """
    Generate QTI for a single question.

    Only Valid MCQ questions are generated; anything else is recorded as a
    typed error without attempting generation.
    """
    if question.validation_status != ItemValidationStatus.VALID:
        return _failed(
            question,
            GenerationError(
                code=INVALID_STATUS,
                message=(
                    f"Question validation status is '{question.validation_status.value}', not 'Valid'"
                ),
            ),
        )

    if question.type != ItemType.MCQ:
        return _failed(
            question,
            GenerationError(
                code=UNSUPPORTED_TYPE,
                message=(
                    f"Question type '{question.type.value}' is not supported in this version (only MCQ)"
                ),
            ),
        )

    try:
        outcome = generate_and_validate_mcq(question, version)
    except Exception as e:
        logger.error(
            "Unexpected error generating QTI",
            extra={"question_id": question.id, "error": str(e)},
            exc_info=True,
        )
        return _failed(
            question,
            GenerationError(
                code=GENERATION_ERROR,
                message=str(e),
                details={"type": type(e).__name__},
            ),
        )

    if outcome.error is not None:
        return _failed(question, outcome.error)

    updated = question.model_copy(
        update={
            "generated_output": outcome.xml,
            "generation_status": GenerationStatus.SUCCESS,
            "generation_errors": None,
        }
    )
    return QuestionGenerationResult(question=updated)


def generate_qti_batch(
    questions: Sequence[Question], version: str = "2.1"
) -> tuple[list[QuestionGenerationResult], GenerationSummary]:
    """Generate every question in order and summarise the batch."""
    results: list[QuestionGenerationResult] = []
    errors: list[GenerationErrorEntry] = []

    for question in questions:
        result = generate_qti_for_question(question, version)
        results.append(result)
        if result.error is not None:
            logger.warning(
                "QTI generation failed",
                extra={
                    "question_id": question.id,
                    "error_code": result.error.code,
                    "error": result.error.message,
                },
            )
            errors.append(GenerationErrorEntry(question_id=question.id, error=result.error))

    summary = GenerationSummary(
        total=len(questions),
        success=len(questions) - len(errors),
        failed=len(errors),
        errors=tuple(errors),
    )
    logger.info(
        "QTI batch generation completed",
        extra={"total": summary.total, "success": summary.success, "failed": summary.failed},
    )
    return results, summary


def generate_qti_for_upload(questions: Sequence[Question], version: str = "2.1") -> GenerationSummary:
    """Generate QTI for a batch of questions and return the summary."""
    _, summary = generate_qti_batch(questions, version)
    return summary


def generate_batch_report(summary: GenerationSummary) -> str:
    """Render a plain-text report for a batch summary."""
    lines = [
        "QTI Generation Report",
        "=" * REPORT_RULE_WIDTH,
        f"Total Questions: {summary.total}",
        f"Successfully Generated: {summary.success}",
        f"Failed: {summary.failed}",
        f"Success Rate: {summary.success_rate:.2f}%",
    ]

    if summary.errors:
        lines.append("")
        lines.append("Errors:")
        lines.append("-" * REPORT_RULE_WIDTH)
        for entry in summary.errors:
            lines.append(f"Question ID: {entry.question_id}")
            lines.append(f"Code: {entry.error.code}")
            lines.append(f"Message: {entry.error.message}")
            lines.append("")

    return "\n".join(lines)


def validate_questions_for_generation(questions: Sequence[Question]) -> tuple[bool, list[str]]:
    """Pre-flight check: are all questions eligible for generation?"""
    errors: list[str] = []

    for question in questions:
        if question.validation_status != ItemValidationStatus.VALID:
            errors.append(
                f"Question {question.identifier}: Invalid validation status "
                f"'{question.validation_status.value}'"
            )
        if question.type != ItemType.MCQ:
            errors.append(
                f"Question {question.identifier}: Unsupported type '{question.type.value}' "
                "(only MCQ supported)"
            )
        if len(question.options) < 2:
            errors.append(f"Question {question.identifier}: Insufficient options (need at least 2)")
        if not question.correct_answer:
            errors.append(f"Question {question.identifier}: No correct answer specified")

    return not errors, errors
