"""
Command-line interface for the conversion pipeline.

FILE arguments are JSON documents of the form
{"columns": [...], "rows": [{...}, ...]}, as produced by the sheet parser.

Example:
    python -m qtibridge.cli validate questions.json
    python -m qtibridge.cli export questions.json --format xml --version 2.2 --out build/
"""

import json
import sys
from pathlib import Path
from typing import Any

import click

from qtibridge.core.config import settings
from qtibridge.core.logging import get_logger, setup_logging
from qtibridge.schemas.question import ValidationStatus
from qtibridge.services.exporter import export_rows_to_json, export_rows_to_qti
from qtibridge.services.importer import (
    assign_row_ids,
    detect_question_columns,
    validate_all_questions,
)
from qtibridge.services.qti.generation import generate_batch_report
from qtibridge.services.qti.json_exporter import render_json

logger = get_logger(__name__)


def _load_sheet(path: str) -> tuple[list[str], list[dict[str, Any]]]:
    """Read a parsed sheet; columns default to the keys of the first row."""
    try:
        document = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise click.ClickException(f"Could not read {path}: {e}") from e

    if not isinstance(document, dict) or not isinstance(document.get("rows"), list):
        raise click.ClickException(f"{path} must contain an object with a 'rows' list")

    rows = document["rows"]
    columns = document.get("columns")
    if columns is None:
        columns = list(rows[0].keys()) if rows else []
    return columns, rows


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level: str | None):
    """QTI bridge CLI."""
    setup_logging(log_level, stream=sys.stderr)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def columns(file: str):
    """Print the detected column roles."""
    sheet_columns, _ = _load_sheet(file)
    mapping = detect_question_columns(sheet_columns)
    click.echo(json.dumps(mapping.model_dump(), indent=2))


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print full results as JSON")
def validate(file: str, as_json: bool):
    """
    Validate every row.

    Exits with status 1 when any row is rejected.
    """
    sheet_columns, rows = _load_sheet(file)
    mapping = detect_question_columns(sheet_columns)
    results = validate_all_questions(
        assign_row_ids(rows), mapping, settings.VALIDATION_RULE_VERSION
    )

    if as_json:
        click.echo(json.dumps([r.model_dump(mode="json") for r in results], indent=2))
    else:
        for result in results:
            click.echo(
                f"Row {result.row_number}: {result.status.value} ({result.detected_type}), "
                f"{result.error_count} errors, {result.warning_count} warnings"
            )
            for error in [*result.critical_errors, *result.warnings]:
                click.echo(f"  [{error.level.value}] {error.field}: {error.message}")

    if any(r.status == ValidationStatus.REJECTED for r in results):
        sys.exit(1)


@cli.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--format", "fmt", type=click.Choice(["xml", "json"]), default="xml", help="Output format")
@click.option(
    "--version",
    "qti_version",
    type=click.Choice(["2.1", "2.2"]),
    default=None,
    help="QTI version (defaults to QTI_DEFAULT_VERSION)",
)
@click.option("--out", "out_dir", type=click.Path(file_okay=False), default=".", help="Output directory")
def export(file: str, fmt: str, qti_version: str | None, out_dir: str):
    """Export rows as QTI XML files or a JSON document."""
    sheet_columns, rows = _load_sheet(file)
    mapping = detect_question_columns(sheet_columns)
    rows = assign_row_ids(rows)
    target = Path(out_dir)
    target.mkdir(parents=True, exist_ok=True)

    if fmt == "json":
        document = export_rows_to_json(rows, mapping, rule_version=settings.VALIDATION_RULE_VERSION)
        out_file = target / "questions.json"
        out_file.write_text(render_json(document), encoding="utf-8")
        click.echo(f"Wrote {len(document['questions'])} questions to {out_file}")
        return

    export_result = export_rows_to_qti(
        rows,
        mapping,
        qti_version or settings.QTI_DEFAULT_VERSION,
        rule_version=settings.VALIDATION_RULE_VERSION,
    )
    for item in export_result.files:
        (target / item.filename).write_text(item.content, encoding="utf-8")
    logger.info("Export files written", extra={"out_dir": str(target), "files": len(export_result.files)})

    click.echo(generate_batch_report(export_result.summary))
    if export_result.summary.failed:
        sys.exit(1)


if __name__ == "__main__":
    cli()
