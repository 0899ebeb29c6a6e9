"""Import pipeline: column roles, type inference, validation and row mapping."""

from qtibridge.services.importer.cells import assign_row_ids, normalize_row
from qtibridge.services.importer.classifier import detect_question_type
from qtibridge.services.importer.column_detector import detect_question_columns
from qtibridge.services.importer.row_mapper import RowMapper
from qtibridge.services.importer.validators import (
    QuestionValidator,
    validate_all_questions,
    validate_single_row,
)

__all__ = [
    "assign_row_ids",
    "normalize_row",
    "detect_question_type",
    "detect_question_columns",
    "RowMapper",
    "QuestionValidator",
    "validate_all_questions",
    "validate_single_row",
]
