"""Pydantic schemas for question rows, validation verdicts and QTI generation."""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# A spreadsheet cell: text, a number, or absent
RowValue = str | int | float | None
Row = dict[str, RowValue]


# ============================================================================
# Enums
# ============================================================================


class QuestionType(str, Enum):
    """Question types recognised by the classifier and the rule engine."""

    MCQ = "mcq"
    MSQ = "msq"
    TRUE_FALSE = "truefalse"
    SHORT_ANSWER = "shortanswer"
    ORDER = "order"


class ErrorLevel(str, Enum):
    """Validation issue severity."""

    CRITICAL = "critical"
    WARNING = "warning"


class ValidationStatus(str, Enum):
    """Tri-state verdict for a validated row."""

    VALID = "valid"
    CAUTION = "caution"
    REJECTED = "rejected"


class ItemType(str, Enum):
    """Canonical item types accepted by the generation engine."""

    MCQ = "MCQ"
    MSQ = "MSQ"
    SHORT_ANSWER = "ShortAnswer"
    ORDER = "OrderInteraction"


class ItemValidationStatus(str, Enum):
    """Validation status carried by a canonical question."""

    VALID = "Valid"
    CAUTION = "Caution"
    REJECTED = "Rejected"


class GenerationStatus(str, Enum):
    """Per-question generation state: Pending -> Success | Failed."""

    PENDING = "Pending"
    SUCCESS = "Success"
    FAILED = "Failed"


# ============================================================================
# Column roles
# ============================================================================


class RoleMapping(BaseModel):
    """Detected correspondence between raw columns and question fields."""

    model_config = ConfigDict(frozen=True)

    question_col: str | None = None
    answer_col: str | None = None
    type_col: str | None = None
    difficulty_col: str | None = None
    solution_col: str | None = None
    points_col: str | None = None
    subject_col: str | None = None
    topic_col: str | None = None
    tolerance_col: str | None = None
    order_col: str | None = None
    option_cols: tuple[str, ...] | None = None


# ============================================================================
# Validation
# ============================================================================


class ValidationError(BaseModel):
    """A single validation issue for a row."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str
    level: ErrorLevel


class ValidationResult(BaseModel):
    """Verdict for one row; recomputed whenever the row changes."""

    row_id: str
    row_number: int
    status: ValidationStatus
    detected_type: str
    critical_errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[ValidationError] = Field(default_factory=list)
    error_count: int = 0
    warning_count: int = 0
    timestamp: datetime
    rule_version: str

    @field_validator("row_id", mode="before")
    @classmethod
    def coerce_row_id(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @model_validator(mode="after")
    def status_matches_errors(self) -> "ValidationResult":
        expected = derive_status(self.critical_errors, self.warnings)
        if self.status != expected:
            raise ValueError(f"status '{self.status.value}' does not match errors ('{expected.value}')")
        if self.error_count != len(self.critical_errors):
            raise ValueError("error_count must equal the number of critical errors")
        if self.warning_count != len(self.warnings):
            raise ValueError("warning_count must equal the number of warnings")
        return self

    @classmethod
    def from_issues(
        cls,
        *,
        row_id: Any,
        row_number: int,
        detected_type: str,
        issues: list[ValidationError],
        rule_version: str,
        timestamp: datetime,
    ) -> "ValidationResult":
        """Split issues by level and derive the status."""
        critical = [e for e in issues if e.level == ErrorLevel.CRITICAL]
        warnings = [e for e in issues if e.level == ErrorLevel.WARNING]
        return cls(
            row_id=row_id,
            row_number=row_number,
            status=derive_status(critical, warnings),
            detected_type=detected_type,
            critical_errors=critical,
            warnings=warnings,
            error_count=len(critical),
            warning_count=len(warnings),
            timestamp=timestamp,
            rule_version=rule_version,
        )

    @property
    def is_exportable(self) -> bool:
        return self.status != ValidationStatus.REJECTED


def derive_status(
    critical_errors: list[ValidationError], warnings: list[ValidationError]
) -> ValidationStatus:
    """rejected iff any critical error; else caution iff any warning; else valid."""
    if critical_errors:
        return ValidationStatus.REJECTED
    if warnings:
        return ValidationStatus.CAUTION
    return ValidationStatus.VALID


# ============================================================================
# Generation
# ============================================================================


class GenerationError(BaseModel):
    """Typed failure record for a single question."""

    code: str
    message: str
    details: Any | None = None


class Question(BaseModel):
    """Canonical question handed to the generation engine."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    upload_id: str | None = None
    identifier: str = ""
    stem: str = ""
    type: ItemType = ItemType.MCQ
    options: list[str] = Field(default_factory=list)
    correct_answer: str = ""
    validation_status: ItemValidationStatus = ItemValidationStatus.VALID
    generated_output: str | None = None
    generation_status: GenerationStatus = GenerationStatus.PENDING
    generation_errors: list[GenerationError] | None = None


class GenerationErrorEntry(BaseModel):
    """Error entry in a batch summary."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    error: GenerationError


class GenerationSummary(BaseModel):
    """Aggregate outcome of a batch run."""

    model_config = ConfigDict(frozen=True)

    total: int
    success: int
    failed: int
    errors: tuple[GenerationErrorEntry, ...] = ()

    @property
    def success_rate(self) -> float:
        """Percentage of successfully generated items (0 for an empty batch)."""
        if self.total == 0:
            return 0.0
        return self.success / self.total * 100


# ============================================================================
# Legacy converter / JSON projection
# ============================================================================


class QTIOption(BaseModel):
    """Option of the intermediate question shape."""

    id: str
    label: str
    content: str
    correct: bool | None = None


class QTIQuestion(BaseModel):
    """Richer intermediate question shape used by the legacy converter and JSON export."""

    id: str
    type: str
    title: str
    question_text: str
    options: list[QTIOption] | None = None
    correct_answer: str | None = None
    explanation: str | None = None
    points: float | None = None
    difficulty: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
