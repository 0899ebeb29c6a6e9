"""Row mapper for the generation engine."""

import string
from collections.abc import Mapping
from typing import Any

from qtibridge.schemas.question import (
    ItemType,
    ItemValidationStatus,
    Question,
    QuestionType,
    RoleMapping,
    ValidationResult,
    ValidationStatus,
)
from qtibridge.services.importer.cells import cell_text
from qtibridge.services.importer.classifier import resolve_rule_type
from qtibridge.services.importer.validators import answer_index, split_order_items

ITEM_TYPES: dict[QuestionType, ItemType] = {
    QuestionType.MCQ: ItemType.MCQ,
    QuestionType.TRUE_FALSE: ItemType.MCQ,
    QuestionType.MSQ: ItemType.MSQ,
    QuestionType.SHORT_ANSWER: ItemType.SHORT_ANSWER,
    QuestionType.ORDER: ItemType.ORDER,
}

ITEM_STATUSES: dict[ValidationStatus, ItemValidationStatus] = {
    ValidationStatus.VALID: ItemValidationStatus.VALID,
    ValidationStatus.CAUTION: ItemValidationStatus.CAUTION,
    ValidationStatus.REJECTED: ItemValidationStatus.REJECTED,
}

TRUTHY_ANSWERS = frozenset({"true", "t", "yes", "y"})


def _letter(index: int) -> str:
    return string.ascii_uppercase[index]


def item_type_for(detected_type: str) -> ItemType:
    """Canonical item type; unrecognised types are treated as short answer."""
    rule_type = resolve_rule_type(detected_type)
    if rule_type is None:
        return ItemType.SHORT_ANSWER
    return ITEM_TYPES[rule_type]


class RowMapper:
    """Map validated rows to canonical questions according to the role mapping."""

    def __init__(self, mapping: RoleMapping, upload_id: str | None = None):
        """
        Initialize row mapper.

        Args:
            mapping: Column role mapping for the dataset
            upload_id: Optional batch identifier stamped on each question
        """
        self.mapping = mapping
        self.upload_id = upload_id

    def map_row(self, row: Mapping[str, Any], result: ValidationResult) -> Question:
        """
        Map a row and its validation verdict to a canonical question.

        Option letters are re-assigned over the non-empty option cells, and
        the correct answer is translated to match.

        Args:
            row: Raw row with an `id`
            result: Current validation result for that row

        Returns:
            Question ready for the generation engine
        """
        row_id = cell_text(row, "id")
        rule_type = resolve_rule_type(result.detected_type)

        if rule_type in (QuestionType.MCQ, QuestionType.MSQ, QuestionType.TRUE_FALSE):
            options, correct = self._choice_fields(row, rule_type)
        elif rule_type == QuestionType.ORDER:
            options = split_order_items(cell_text(row, self.mapping.order_col))
            correct = ",".join(options)
        else:
            options, correct = [], cell_text(row, self.mapping.answer_col)

        return Question(
            id=row_id,
            upload_id=self.upload_id,
            identifier=row_id,
            stem=cell_text(row, self.mapping.question_col),
            type=item_type_for(result.detected_type),
            options=options,
            correct_answer=correct,
            validation_status=ITEM_STATUSES[result.status],
        )

    def _choice_fields(self, row: Mapping[str, Any], rule_type: QuestionType) -> tuple[list[str], str]:
        # Position of each non-empty option among all option columns
        positions: list[int] = []
        options: list[str] = []
        for index, col in enumerate(self.mapping.option_cols or ()):
            text = cell_text(row, col)
            if text:
                positions.append(index)
                options.append(text)

        raw_answer = cell_text(row, self.mapping.answer_col)

        if rule_type == QuestionType.TRUE_FALSE:
            return options, self._true_false_answer(options, raw_answer)

        tokens = raw_answer.split(",") if rule_type == QuestionType.MSQ else [raw_answer]
        letters = []
        for token in tokens:
            if not token.strip():
                continue
            original = answer_index(token)
            if original is None:
                # Malformed: keep the raw token so generation reports it
                letters.append(token.strip().upper())
            elif original in positions:
                letters.append(_letter(positions.index(original)))
            # Answers pointing at an empty option cell are dropped
        return options, ",".join(letters)

    @staticmethod
    def _true_false_answer(options: list[str], raw_answer: str) -> str:
        """Resolve true/yes style answers to the letter of the matching option."""
        if answer_index(raw_answer) is not None:
            return raw_answer.strip().upper()
        wanted = raw_answer.strip().lower() in TRUTHY_ANSWERS
        for index, option in enumerate(options):
            if (option.strip().lower() in TRUTHY_ANSWERS) == wanted:
                return _letter(index)
        return raw_answer
