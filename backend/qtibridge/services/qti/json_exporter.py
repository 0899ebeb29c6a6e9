"""JSON export of the intermediate question shape."""

import json
from collections.abc import Sequence
from typing import Any

from qtibridge.schemas.question import QTIQuestion

JSON_EXPORT_VERSION = "1.0"


def question_to_dict(question: QTIQuestion) -> dict[str, Any]:
    """Project one question into the export document's camelCase layout."""
    options = None
    if question.options is not None:
        options = [opt.model_dump(exclude_none=True) for opt in question.options]
    return {
        "id": question.id,
        "type": question.type,
        "title": question.title,
        "questionText": question.question_text,
        "options": options,
        "correctAnswer": question.correct_answer,
        "explanation": question.explanation,
        "points": question.points,
        "difficulty": question.difficulty,
        "metadata": question.metadata,
    }


def generate_json(questions: Sequence[QTIQuestion]) -> dict[str, Any]:
    """Build the JSON export document for a set of questions."""
    return {
        "version": JSON_EXPORT_VERSION,
        "questions": [question_to_dict(q) for q in questions],
    }


def render_json(document: dict[str, Any]) -> str:
    """Serialize an export document as indented UTF-8 JSON text."""
    return json.dumps(document, indent=2, ensure_ascii=False)
