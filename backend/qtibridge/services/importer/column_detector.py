"""Column role detection for uploaded question sheets."""

import re
from collections.abc import Sequence

from qtibridge.schemas.question import RoleMapping

# Ordered substring patterns per role (matched against lowercased names)
ROLE_PATTERNS: dict[str, tuple[str, ...]] = {
    "question_col": ("question", "query", "problem", "stem", "text"),
    "answer_col": ("answer", "correct"),
    "type_col": ("type", "qtype", "questiontype"),
    "difficulty_col": ("difficulty", "level", "difficulty_level"),
    "solution_col": ("solution", "explanation", "remark"),
    "points_col": ("points", "marks", "score", "weight", "grade"),
    "subject_col": ("subject", "category", "domain"),
    "topic_col": ("topic", "subtopic", "unit", "chapter"),
    "tolerance_col": ("tolerance", "margin", "tolerance_value"),
    "order_col": ("order", "sequence", "arrange", "order_items"),
}

OPTION_COLUMN_RE = re.compile(r"^(?:option\s*[a-h]|[a-h]|option\s*[1-8]|[1-8])$", re.IGNORECASE)


def find_column(columns: Sequence[str], patterns: Sequence[str]) -> str | None:
    """Return the first column whose lowercased name contains any pattern."""
    for column in columns:
        lowered = column.lower()
        if any(pattern in lowered for pattern in patterns):
            return column
    return None


def is_option_column(column: str) -> bool:
    """Option columns: `Option A`-`Option H`, `A`-`H`, `Option 1`-`Option 8`, `1`-`8`."""
    return OPTION_COLUMN_RE.match(column.strip()) is not None


def detect_question_columns(columns: Sequence[str]) -> RoleMapping:
    """
    Map raw column names to semantic roles.

    Each role is resolved independently, so one column may satisfy several
    roles (e.g. "answer type"). Unresolved roles stay None and surface later
    as validation errors.

    Args:
        columns: Column names in upload order

    Returns:
        RoleMapping for the dataset
    """
    resolved = {role: find_column(columns, patterns) for role, patterns in ROLE_PATTERNS.items()}
    option_cols = tuple(col for col in columns if is_option_column(col))
    return RoleMapping(**resolved, option_cols=option_cols or None)
