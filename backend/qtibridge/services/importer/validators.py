"""Rule-based validation of question rows."""

import re
import string
from collections.abc import Callable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from qtibridge.schemas.question import (
    ErrorLevel,
    QuestionType,
    RoleMapping,
    ValidationError,
    ValidationResult,
)
from qtibridge.services.importer.cells import (
    cell_text,
    has_value,
    normalize_row,
    option_values,
)
from qtibridge.services.importer.classifier import detect_question_type, resolve_rule_type

DEFAULT_RULE_VERSION = "1.0"

ANSWER_LETTERS = "ABCDEFGH"
ANSWER_NUMBERS = tuple(str(n) for n in range(1, len(ANSWER_LETTERS) + 1))

MIN_STEM_LENGTH = 5
MIN_OPTION_LENGTH = 3
MIN_SHORT_ANSWER_LENGTH = 2
MIN_ORDER_ITEMS = 2

NUMERIC_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


def _critical(field: str, message: str) -> ValidationError:
    return ValidationError(field=field, message=message, level=ErrorLevel.CRITICAL)


def _warning(field: str, message: str) -> ValidationError:
    return ValidationError(field=field, message=message, level=ErrorLevel.WARNING)


def answer_index(answer: str) -> int | None:
    """0-based option index for an A-H / 1-8 answer token, None if malformed."""
    token = answer.strip().upper()
    if len(token) == 1 and token in ANSWER_LETTERS:
        return ANSWER_LETTERS.index(token)
    if token in ANSWER_NUMBERS:
        return int(token) - 1
    return None


def answer_position(answer: str) -> int | None:
    """
    0-based position named by a single letter or a positive number.

    Wider than answer_index so that answers like "Z" or "9" are reported
    against the option count rather than as malformed.
    """
    token = answer.strip().upper()
    if len(token) == 1 and token in string.ascii_uppercase:
        return string.ascii_uppercase.index(token)
    if token.isascii() and token.isdigit() and int(token) > 0:
        return int(token) - 1
    return None


def is_numeric(text: str) -> bool:
    return bool(NUMERIC_RE.match(text.strip()))


class QuestionValidator:
    """Validate question rows against base and type-specific rules."""

    def __init__(self, mapping: RoleMapping, rule_version: str = DEFAULT_RULE_VERSION):
        """
        Initialize validator.

        Args:
            mapping: Column role mapping for the dataset
            rule_version: Version stamp recorded on each result
        """
        self.mapping = mapping
        self.rule_version = rule_version
        self._type_rules: dict[QuestionType, Callable[[Mapping[str, Any], list[ValidationError]], None]] = {
            QuestionType.MCQ: self._validate_mcq,
            QuestionType.MSQ: self._validate_msq,
            QuestionType.SHORT_ANSWER: self._validate_short_answer,
            QuestionType.ORDER: self._validate_order,
        }

    def validate(self, row: Mapping[str, Any], row_number: int) -> ValidationResult:
        """
        Validate a single row.

        Args:
            row: Raw row (column name -> cell value) with an `id`
            row_number: 1-based position in the upload

        Returns:
            ValidationResult with status derived from the collected issues
        """
        normalized = normalize_row(row)
        detected_type = detect_question_type(normalized, self.mapping)

        issues = self.validate_base_fields(normalized)
        rule_type = resolve_rule_type(detected_type)
        type_rule = self._type_rules.get(rule_type) if rule_type is not None else None
        if type_rule is not None:
            type_rule(normalized, issues)

        return ValidationResult.from_issues(
            row_id=row.get("id"),
            row_number=row_number,
            detected_type=detected_type,
            issues=issues,
            rule_version=self.rule_version,
            timestamp=datetime.now(UTC),
        )

    def validate_base_fields(self, row: Mapping[str, Any]) -> list[ValidationError]:
        """Rules applied to every row regardless of type."""
        m = self.mapping
        errors: list[ValidationError] = []

        if not cell_text(row, "id"):
            errors.append(_critical("Identifier", "Missing unique identifier for question"))

        if len(cell_text(row, m.question_col)) < MIN_STEM_LENGTH:
            errors.append(
                _critical(
                    "Question Stem",
                    f"Question text is missing or too short (minimum {MIN_STEM_LENGTH} characters)",
                )
            )

        # Type is auto-detected when absent
        if not has_value(row, m.type_col):
            errors.append(_warning("Question Type", "Question type will be auto-detected"))

        if not has_value(row, m.answer_col):
            errors.append(_critical("Correct Answer", "Missing correct answer"))

        if not has_value(row, m.points_col):
            errors.append(_warning("Grade", "Points/Grade value missing"))

        if not has_value(row, m.subject_col):
            errors.append(_warning("Subject", "Subject field is empty"))

        if not has_value(row, m.topic_col):
            errors.append(_warning("Topic", "Topic field is empty"))

        if not has_value(row, m.difficulty_col):
            errors.append(_warning("Difficulty", "Difficulty level missing"))

        if not has_value(row, m.solution_col):
            errors.append(
                _warning("Solution", "Solution/Explanation is recommended but not provided")
            )

        return errors

    def _check_option_count(
        self, row: Mapping[str, Any], errors: list[ValidationError], label: str
    ) -> list[str] | None:
        """Shared MCQ/MSQ option thresholds. Returns None when no option columns exist."""
        option_cols = self.mapping.option_cols or ()
        if len(option_cols) < 2:
            errors.append(
                _critical("Options", f"No option columns found for {label} (minimum 2 required)")
            )
            return None

        values = option_values(row, option_cols)
        if len(values) < 2:
            errors.append(
                _critical(
                    "Options",
                    f"Not enough options provided (found {len(values)}, need at least 2)",
                )
            )
        elif len(values) == 2:
            errors.append(_warning("Options", f"Only 2 options in {label} (3 or more recommended)"))
        return values

    def _validate_mcq(self, row: Mapping[str, Any], errors: list[ValidationError]) -> None:
        values = self._check_option_count(row, errors, "MCQ")
        if values is None:
            return

        unique = {" ".join(v.lower().split()) for v in values}
        if len(unique) < len(values):
            errors.append(_warning("Options", "Duplicate options detected"))

        for idx, value in enumerate(values):
            if len(value) < MIN_OPTION_LENGTH:
                errors.append(
                    _warning(
                        f"Option {idx + 1}",
                        f"Option text too short (minimum {MIN_OPTION_LENGTH} characters)",
                    )
                )

        if not has_value(row, self.mapping.answer_col):
            return

        answer = cell_text(row, self.mapping.answer_col).upper()
        index = answer_position(answer)
        if index is None:
            errors.append(
                _critical(
                    "Correct Answer",
                    f'Invalid correct answer format: "{answer}" (use A-H or 1-8)',
                )
            )
        elif index >= len(values):
            errors.append(
                _critical(
                    "Correct Answer",
                    f"Correct answer ({answer}) exceeds number of options ({len(values)})",
                )
            )

    def _validate_msq(self, row: Mapping[str, Any], errors: list[ValidationError]) -> None:
        if self._check_option_count(row, errors, "MSQ") is None:
            return

        if not has_value(row, self.mapping.answer_col):
            return

        raw = cell_text(row, self.mapping.answer_col)
        answers = [token.strip().upper() for token in raw.split(",") if token.strip()]

        if not answers:
            errors.append(_critical("Correct Answers", "No correct answers specified"))
        elif len(answers) == 1:
            errors.append(
                _warning(
                    "Correct Answers",
                    "MSQ should have multiple correct answers (use comma-separated list)",
                )
            )

        invalid = [a for a in answers if answer_index(a) is None]
        if invalid:
            errors.append(
                _critical(
                    "Correct Answers",
                    f'Invalid answer format: "{", ".join(invalid)}" (use A-H or 1-8, comma-separated)',
                )
            )

    def _validate_short_answer(self, row: Mapping[str, Any], errors: list[ValidationError]) -> None:
        if option_values(row, self.mapping.option_cols):
            errors.append(_critical("Options", "Text entry type should not have options"))

        answer = cell_text(row, self.mapping.answer_col)
        if answer and len(answer) < MIN_SHORT_ANSWER_LENGTH:
            errors.append(_warning("Correct Answer", "Expected answer is too short"))

        if answer and is_numeric(answer) and not has_value(row, self.mapping.tolerance_col):
            errors.append(_warning("Tolerance", "Numeric answer should have tolerance value"))

    def _validate_order(self, row: Mapping[str, Any], errors: list[ValidationError]) -> None:
        if not has_value(row, self.mapping.order_col):
            errors.append(_critical("Order Items", "No items found for ordering"))
            return

        items = split_order_items(cell_text(row, self.mapping.order_col))
        if len(items) < MIN_ORDER_ITEMS:
            errors.append(
                _critical(
                    "Order Items",
                    f"Insufficient items for ordering (found {len(items)}, need at least {MIN_ORDER_ITEMS})",
                )
            )


def split_order_items(text: str) -> list[str]:
    """Comma-separated, non-blank ordering items."""
    return [item.strip() for item in text.split(",") if item.strip()]


def validate_all_questions(
    rows: Sequence[Mapping[str, Any]],
    mapping: RoleMapping,
    rule_version: str = DEFAULT_RULE_VERSION,
) -> list[ValidationResult]:
    """Validate every row; row numbers start at 1."""
    validator = QuestionValidator(mapping, rule_version)
    return [validator.validate(row, index + 1) for index, row in enumerate(rows)]


def validate_single_row(
    row: Mapping[str, Any],
    row_number: int,
    mapping: RoleMapping,
    rule_version: str = DEFAULT_RULE_VERSION,
) -> ValidationResult:
    """Re-validate one row after an edit."""
    return QuestionValidator(mapping, rule_version).validate(row, row_number)
