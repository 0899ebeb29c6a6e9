"""Question type inference from row structure."""

from collections.abc import Mapping
from typing import Any

from qtibridge.schemas.question import QuestionType, RoleMapping
from qtibridge.services.importer.cells import cell_text, has_value, option_values

TRUE_FALSE_PAIRS = ({"true", "false"}, {"yes", "no"})

# Declared types that share another type's rules
TYPE_ALIASES: dict[str, QuestionType] = {
    "textentry": QuestionType.SHORT_ANSWER,
    "numeric": QuestionType.SHORT_ANSWER,
}


def detect_question_type(row: Mapping[str, Any], mapping: RoleMapping) -> str:
    """
    Infer a row's question type.

    Decision order (first match wins):
    1. A populated type column is returned lowercased and trimmed, unchecked.
    2. A populated order column means `order`.
    3. Two options reading true/false or yes/no mean `truefalse`;
       two or more options mean `mcq`.
    4. Otherwise `shortanswer`.

    MSQ is only reachable through the type column.
    """
    if has_value(row, mapping.type_col):
        return cell_text(row, mapping.type_col).lower()

    if has_value(row, mapping.order_col):
        return QuestionType.ORDER.value

    options = option_values(row, mapping.option_cols)
    if len(options) == 2 and {o.lower() for o in options} in TRUE_FALSE_PAIRS:
        return QuestionType.TRUE_FALSE.value
    if len(options) >= 2:
        return QuestionType.MCQ.value

    return QuestionType.SHORT_ANSWER.value


def resolve_rule_type(detected_type: str) -> QuestionType | None:
    """Map a detected type string onto a known type; None when unrecognised."""
    if detected_type in TYPE_ALIASES:
        return TYPE_ALIASES[detected_type]
    try:
        return QuestionType(detected_type)
    except ValueError:
        return None
