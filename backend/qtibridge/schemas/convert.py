"""Pydantic schemas for the conversion API."""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from qtibridge.schemas.question import (
    GenerationSummary,
    Question,
    RoleMapping,
    RowValue,
    ValidationResult,
)

# Validation caps (input hardening)
COLUMN_NAME_MAX_LENGTH = 200
COLUMNS_MAX_ITEMS = 200


class ColumnsIn(BaseModel):
    """Column names from an uploaded sheet."""

    columns: list[str] = Field(..., max_length=COLUMNS_MAX_ITEMS, description="Column names in upload order")


class RowsIn(BaseModel):
    """Rows plus either the raw columns or an (edited) role mapping."""

    columns: list[str] | None = Field(
        None, max_length=COLUMNS_MAX_ITEMS, description="Column names; used when no mapping is given"
    )
    mapping: RoleMapping | None = Field(None, description="Role mapping; takes precedence over columns")
    rows: list[dict[str, RowValue]] = Field(..., description="Rows keyed by column name")

    @model_validator(mode="after")
    def columns_within_limits(self) -> "RowsIn":
        for name in self.columns or []:
            if len(name) > COLUMN_NAME_MAX_LENGTH:
                raise ValueError(f"Column names must be at most {COLUMN_NAME_MAX_LENGTH} characters")
        return self


class ExportQTIIn(RowsIn):
    """Rows to export as QTI XML."""

    version: Literal["2.1", "2.2"] | None = Field(None, description="QTI version; server default when omitted")


class StatusCounts(BaseModel):
    """Number of rows per validation status."""

    valid: int = 0
    caution: int = 0
    rejected: int = 0


class ValidateOut(BaseModel):
    """Validation response."""

    mapping: RoleMapping
    results: list[ValidationResult]
    counts: StatusCounts


class GenerateIn(BaseModel):
    """Canonical questions to generate."""

    questions: list[Question]
    version: Literal["2.1", "2.2"] | None = None


class GenerateOut(BaseModel):
    """Batch generation response."""

    summary: GenerationSummary
    report: str
    outputs: dict[str, str] = Field(default_factory=dict, description="question id -> XML")


class ExportFileOut(BaseModel):
    """Generated file."""

    filename: str
    content: str


class ExportQTIOut(BaseModel):
    """QTI export response."""

    version: str
    files: list[ExportFileOut]
    summary: GenerationSummary
    report: str


class ExportJSONOut(BaseModel):
    """JSON export response."""

    version: str
    questions: list[dict[str, Any]]
