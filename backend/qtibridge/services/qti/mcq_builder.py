"""
QTI MCQ builder.

Generates compliant QTI 2.1 (or 2.2) XML for single-answer multiple choice
questions. Input is checked before any XML is built; problems raise
QTIGenerationError with a stable code. The emitted XML is validated
separately so "we built something" and "what we built is compliant" stay
distinguishable.
"""

from dataclasses import dataclass
from typing import Any

from qtibridge.schemas.question import GenerationError, Question
from qtibridge.services.qti.xml_utils import (
    answer_to_index,
    escape_xml,
    index_to_identifier,
    is_valid_identifier,
    qti_namespace,
)
from qtibridge.services.qti.xml_validator import validate_xml

TITLE_MAX_LENGTH = 100
MIN_OPTIONS = 2
MAX_OPTIONS = 26


class QTIGenerationError(Exception):
    """Typed failure raised while building QTI for a question."""

    MISSING_IDENTIFIER = "MISSING_IDENTIFIER"
    MISSING_STEM = "MISSING_STEM"
    INVALID_OPTIONS = "INVALID_OPTIONS"
    MISSING_CORRECT_ANSWER = "MISSING_CORRECT_ANSWER"
    INVALID_CORRECT_ANSWER = "INVALID_CORRECT_ANSWER"
    ANSWER_OUT_OF_RANGE = "ANSWER_OUT_OF_RANGE"

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details

    def to_error(self) -> GenerationError:
        return GenerationError(code=self.code, message=self.message, details=self.details)


@dataclass(frozen=True)
class GenerationOutcome:
    """Either the generated XML or the error that prevented it."""

    xml: str | None = None
    error: GenerationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MCQBuilder:
    """Build and validate QTI XML for MCQ questions."""

    def __init__(self, version: str = "2.1"):
        """
        Initialize builder.

        Args:
            version: QTI version ("2.1" or "2.2"), selects the namespace
        """
        self.version = version
        self.namespace = qti_namespace(version)

    def generate(self, question: Question) -> str:
        """
        Generate QTI XML for an MCQ question.

        Raises:
            QTIGenerationError: If the question cannot be rendered
        """
        self._validate_question(question)
        answer_letter = self._resolve_correct_answer(question)
        return self._build_xml(question, answer_letter)

    def validate(self, xml: str) -> bool:
        """Validate the generated XML structurally."""
        return not validate_xml(xml)

    def _validate_question(self, question: Question) -> None:
        if not question.identifier or not question.identifier.strip():
            raise QTIGenerationError(
                QTIGenerationError.MISSING_IDENTIFIER, "Question identifier is required"
            )

        if not question.stem or not question.stem.strip():
            raise QTIGenerationError(QTIGenerationError.MISSING_STEM, "Question stem is required")

        if not isinstance(question.options, list):
            raise QTIGenerationError(
                QTIGenerationError.INVALID_OPTIONS, "Question options must be an array"
            )

        if len(question.options) < MIN_OPTIONS:
            raise QTIGenerationError(
                QTIGenerationError.INVALID_OPTIONS,
                f"Question must have at least {MIN_OPTIONS} options",
                {"option_count": len(question.options)},
            )

        if len(question.options) > MAX_OPTIONS:
            raise QTIGenerationError(
                QTIGenerationError.INVALID_OPTIONS,
                f"Question must have at most {MAX_OPTIONS} options",
                {"option_count": len(question.options)},
            )

        if not question.correct_answer or not question.correct_answer.strip():
            raise QTIGenerationError(
                QTIGenerationError.MISSING_CORRECT_ANSWER, "Correct answer is required"
            )

    def _resolve_correct_answer(self, question: Question) -> str:
        """Return the answer as the letter of an existing option (numbers are aliased)."""
        answer = question.correct_answer.strip().upper()
        option_count = len(question.options)

        if not is_valid_identifier(answer):
            raise QTIGenerationError(
                QTIGenerationError.INVALID_CORRECT_ANSWER,
                f'Invalid correct answer format: "{answer}". Must be A-Z or 1-26 '
                f"(question has {option_count} options)",
                {"correct_answer": answer, "option_count": option_count},
            )

        index = answer_to_index(answer)
        if index >= option_count:
            raise QTIGenerationError(
                QTIGenerationError.ANSWER_OUT_OF_RANGE,
                f'Correct answer "{answer}" exceeds number of options ({option_count})',
                {"correct_answer": answer, "option_count": option_count},
            )

        return index_to_identifier(index)

    def _build_xml(self, question: Question, answer_letter: str) -> str:
        escaped_id = escape_xml(question.identifier)
        escaped_title = escape_xml(question.stem[:TITLE_MAX_LENGTH])
        escaped_stem = escape_xml(question.stem)

        simple_choices = "\n".join(
            f'      <simpleChoice identifier="{index_to_identifier(index)}">'
            f"{escape_xml(option)}</simpleChoice>"
            for index, option in enumerate(question.options)
        )

        return f"""<?xml version="1.0" encoding="UTF-8"?>
<assessmentItem
  xmlns="{self.namespace}"
  identifier="{escaped_id}"
  title="{escaped_title}"
  adaptive="false"
  timeDependent="false">

  <responseDeclaration identifier="RESPONSE" cardinality="single" baseType="identifier">
    <correctResponse>
      <value>{answer_letter}</value>
    </correctResponse>
  </responseDeclaration>

  <itemBody>
    <choiceInteraction responseIdentifier="RESPONSE" shuffle="true" maxChoices="1">
      <prompt>{escaped_stem}</prompt>
{simple_choices}
    </choiceInteraction>
  </itemBody>

</assessmentItem>"""


def generate_mcq_xml(question: Question, version: str = "2.1") -> str:
    """
    Generate QTI XML for a single MCQ question.

    Raises:
        QTIGenerationError: If generation fails
    """
    return MCQBuilder(version).generate(question)


def generate_and_validate_mcq(question: Question, version: str = "2.1") -> GenerationOutcome:
    """Generate QTI XML and validate its structure, returning an outcome instead of raising."""
    builder = MCQBuilder(version)
    try:
        xml = builder.generate(question)
    except QTIGenerationError as e:
        return GenerationOutcome(error=e.to_error())

    structural_errors = validate_xml(xml)
    if structural_errors:
        return GenerationOutcome(
            error=GenerationError(
                code="XML_VALIDATION_FAILED",
                message="Generated XML failed validation",
                details=[e.message for e in structural_errors],
            )
        )

    return GenerationOutcome(xml=xml)
