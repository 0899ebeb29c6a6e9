"""Cell access helpers shared by the import pipeline."""

from collections.abc import Iterable, Mapping
from typing import Any

from qtibridge.schemas.question import Row, RowValue


def cell_text(row: Mapping[str, Any], column: str | None) -> str:
    """
    Render a cell as trimmed text.

    Missing columns and absent values render as "". Integral floats drop
    their fractional part so spreadsheet numbers like 3.0 read as "3".
    """
    if not column:
        return ""
    value = row.get(column)
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def has_value(row: Mapping[str, Any], column: str | None) -> bool:
    """True when the column is resolved and its cell is non-empty."""
    return cell_text(row, column) != ""


def option_values(row: Mapping[str, Any], option_cols: Iterable[str] | None) -> list[str]:
    """Non-empty option cells, in column order."""
    if not option_cols:
        return []
    values = (cell_text(row, col) for col in option_cols)
    return [v for v in values if v]


def normalize_row(row: Mapping[str, RowValue]) -> Row:
    """Return a copy of the row with string cells trimmed."""
    return {key: value.strip() if isinstance(value, str) else value for key, value in row.items()}


def assign_row_ids(rows: Iterable[Mapping[str, RowValue]]) -> list[Row]:
    """Give each row an id (`row_{index}`) when the upload did not supply one."""
    assigned: list[Row] = []
    for index, row in enumerate(rows):
        new_row = dict(row)
        if new_row.get("id") in (None, ""):
            new_row["id"] = f"row_{index}"
        assigned.append(new_row)
    return assigned
