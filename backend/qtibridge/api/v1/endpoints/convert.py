"""Conversion endpoints: column detection, validation, generation and export."""

from collections import Counter

from fastapi import APIRouter

from qtibridge.core.app_exceptions import (
    raise_batch_too_large,
    raise_duplicate_question_ids,
    raise_mapping_required,
)
from qtibridge.core.config import settings
from qtibridge.schemas.convert import (
    ColumnsIn,
    ExportFileOut,
    ExportJSONOut,
    ExportQTIIn,
    ExportQTIOut,
    GenerateIn,
    GenerateOut,
    RowsIn,
    StatusCounts,
    ValidateOut,
)
from qtibridge.schemas.question import RoleMapping
from qtibridge.services.exporter import export_rows_to_json, export_rows_to_qti
from qtibridge.services.importer import (
    assign_row_ids,
    detect_question_columns,
    validate_all_questions,
)
from qtibridge.services.qti.generation import generate_batch_report, generate_qti_batch

router = APIRouter(prefix="/convert", tags=["Convert"])


def _check_batch_size(size: int) -> None:
    if size > settings.MAX_BATCH_SIZE:
        raise_batch_too_large(size, settings.MAX_BATCH_SIZE)


def _resolve_mapping(payload: RowsIn) -> RoleMapping:
    """Use the caller's mapping as-is, else detect it from the columns."""
    if payload.mapping is not None:
        return payload.mapping
    if payload.columns is None:
        raise_mapping_required()
    return detect_question_columns(payload.columns)


@router.post("/columns", response_model=RoleMapping)
async def detect_columns(payload: ColumnsIn) -> RoleMapping:
    """Detect column roles from column names."""
    return detect_question_columns(payload.columns)


@router.post("/validate", response_model=ValidateOut)
async def validate_rows(payload: RowsIn) -> ValidateOut:
    """Validate rows and return one verdict per row."""
    _check_batch_size(len(payload.rows))
    mapping = _resolve_mapping(payload)
    rows = assign_row_ids(payload.rows)

    results = validate_all_questions(rows, mapping, settings.VALIDATION_RULE_VERSION)
    counts = Counter(result.status.value for result in results)

    return ValidateOut(mapping=mapping, results=results, counts=StatusCounts(**counts))


@router.post("/generate", response_model=GenerateOut)
async def generate_questions(payload: GenerateIn) -> GenerateOut:
    """Generate QTI XML for canonical questions."""
    _check_batch_size(len(payload.questions))
    # Outputs are keyed by question id
    id_counts = Counter(question.id for question in payload.questions)
    duplicates = sorted(qid for qid, count in id_counts.items() if count > 1)
    if duplicates:
        raise_duplicate_question_ids(duplicates)
    version = payload.version or settings.QTI_DEFAULT_VERSION

    results, summary = generate_qti_batch(payload.questions, version)
    outputs = {
        result.question.id: result.question.generated_output
        for result in results
        if result.question.generated_output is not None
    }

    return GenerateOut(summary=summary, report=generate_batch_report(summary), outputs=outputs)


@router.post("/export/qti", response_model=ExportQTIOut)
async def export_qti(payload: ExportQTIIn) -> ExportQTIOut:
    """Export rows as QTI XML files (packaging is left to the caller)."""
    _check_batch_size(len(payload.rows))
    mapping = _resolve_mapping(payload)
    version = payload.version or settings.QTI_DEFAULT_VERSION

    export = export_rows_to_qti(
        assign_row_ids(payload.rows),
        mapping,
        version,
        rule_version=settings.VALIDATION_RULE_VERSION,
    )

    return ExportQTIOut(
        version=version,
        files=[ExportFileOut(filename=f.filename, content=f.content) for f in export.files],
        summary=export.summary,
        report=generate_batch_report(export.summary),
    )


@router.post("/export/json", response_model=ExportJSONOut)
async def export_json(payload: RowsIn) -> ExportJSONOut:
    """Export rows as the normalized JSON document."""
    _check_batch_size(len(payload.rows))
    mapping = _resolve_mapping(payload)

    document = export_rows_to_json(
        assign_row_ids(payload.rows),
        mapping,
        rule_version=settings.VALIDATION_RULE_VERSION,
    )
    return ExportJSONOut(**document)
