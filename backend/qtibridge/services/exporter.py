"""Row-level export: validated rows to QTI files or a JSON document."""

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from qtibridge.core.logging import get_logger
from qtibridge.schemas.question import (
    GenerationError,
    GenerationErrorEntry,
    GenerationSummary,
    QuestionType,
    RoleMapping,
    ValidationResult,
)
from qtibridge.services.importer.cells import cell_text
from qtibridge.services.importer.classifier import resolve_rule_type
from qtibridge.services.importer.row_mapper import RowMapper
from qtibridge.services.importer.validators import DEFAULT_RULE_VERSION, validate_all_questions
from qtibridge.services.qti.converter import convert_to_qti_question, generate_qti_xml
from qtibridge.services.qti.generation import INVALID_STATUS
from qtibridge.services.qti.json_exporter import generate_json
from qtibridge.services.qti.mcq_builder import generate_and_validate_mcq
from qtibridge.services.qti.xml_utils import qti_namespace

logger = get_logger(__name__)

EXPORT_ERROR = "EXPORT_ERROR"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class ExportFile:
    """One generated item, named for the external packager."""

    filename: str
    content: str


@dataclass(frozen=True)
class QTIExport:
    """Files produced by a row export and the batch summary."""

    files: list[ExportFile] = field(default_factory=list)
    summary: GenerationSummary = field(
        default_factory=lambda: GenerationSummary(total=0, success=0, failed=0)
    )


def _safe_filename(identifier: str, position: int, taken: set[str]) -> str:
    stem = _UNSAFE_FILENAME_CHARS.sub("_", identifier).strip("._") or f"Q{position}"
    filename = f"{stem}.xml"
    suffix = 2
    while filename in taken:
        filename = f"{stem}_{suffix}.xml"
        suffix += 1
    taken.add(filename)
    return filename


def _results_for(
    rows: Sequence[Mapping[str, Any]],
    mapping: RoleMapping,
    results: Sequence[ValidationResult] | None,
    rule_version: str,
) -> Sequence[ValidationResult]:
    if results is None:
        return validate_all_questions(rows, mapping, rule_version)
    if len(results) != len(rows):
        raise ValueError(f"Expected {len(rows)} validation results, got {len(results)}")
    return results


def _render_row(
    row: Mapping[str, Any],
    result: ValidationResult,
    mapper: RowMapper,
    version: str,
) -> tuple[str | None, GenerationError | None]:
    """Strict builder for MCQ rows, legacy converter for the other types."""
    if resolve_rule_type(result.detected_type) == QuestionType.MCQ:
        outcome = generate_and_validate_mcq(mapper.map_row(row, result), version)
        return outcome.xml, outcome.error

    legacy = convert_to_qti_question(row, result.detected_type, mapper.mapping)
    return generate_qti_xml(legacy, version), None


def export_rows_to_qti(
    rows: Sequence[Mapping[str, Any]],
    mapping: RoleMapping,
    version: str = "2.1",
    results: Sequence[ValidationResult] | None = None,
    rule_version: str = DEFAULT_RULE_VERSION,
) -> QTIExport:
    """
    Export rows as QTI XML files.

    Rows are re-validated unless current results are supplied. Rejected rows
    and MCQ rows the strict builder refuses are recorded as failures; every
    other row yields exactly one file.

    Args:
        rows: Rows with ids
        mapping: Column role mapping
        version: QTI version ("2.1" or "2.2")
        results: Current validation results, aligned with rows
        rule_version: Rule version used when re-validating

    Returns:
        QTIExport with one file per exported row and the batch summary
    """
    qti_namespace(version)
    results = _results_for(rows, mapping, results, rule_version)
    mapper = RowMapper(mapping)

    files: list[ExportFile] = []
    errors: list[GenerationErrorEntry] = []
    taken: set[str] = set()

    for position, (row, result) in enumerate(zip(rows, results), start=1):
        if not result.is_exportable:
            errors.append(
                GenerationErrorEntry(
                    question_id=result.row_id,
                    error=GenerationError(
                        code=INVALID_STATUS,
                        message=f"Row {result.row_number} was rejected by validation",
                        details=[e.message for e in result.critical_errors],
                    ),
                )
            )
            continue

        try:
            xml, refusal = _render_row(row, result, mapper, version)
        except Exception as e:
            logger.error(
                "Failed to export row",
                extra={"row_id": result.row_id, "error": str(e)},
                exc_info=True,
            )
            errors.append(
                GenerationErrorEntry(
                    question_id=result.row_id,
                    error=GenerationError(code=EXPORT_ERROR, message=str(e)),
                )
            )
            continue

        if refusal is not None:
            logger.warning(
                "MCQ builder refused row",
                extra={"row_id": result.row_id, "error_code": refusal.code},
            )
            errors.append(GenerationErrorEntry(question_id=result.row_id, error=refusal))
            continue

        identifier = cell_text(row, "id")
        files.append(ExportFile(filename=_safe_filename(identifier, position, taken), content=xml))

    summary = GenerationSummary(
        total=len(rows),
        success=len(files),
        failed=len(errors),
        errors=tuple(errors),
    )
    logger.info(
        "QTI export completed",
        extra={"total": summary.total, "success": summary.success, "failed": summary.failed},
    )
    return QTIExport(files=files, summary=summary)


def export_rows_to_json(
    rows: Sequence[Mapping[str, Any]],
    mapping: RoleMapping,
    results: Sequence[ValidationResult] | None = None,
    rule_version: str = DEFAULT_RULE_VERSION,
) -> dict[str, Any]:
    """Export every row as the intermediate JSON document."""
    results = _results_for(rows, mapping, results, rule_version)
    questions = [
        convert_to_qti_question(row, result.detected_type, mapping)
        for row, result in zip(rows, results)
    ]
    return generate_json(questions)
