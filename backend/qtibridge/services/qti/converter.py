"""
Legacy row-to-QTI converter.

Looser than the MCQ builder: it renders every supported question type from
a raw row, performs no pre-generation checks and does not validate its
output. Used for the non-MCQ question types in row export.
"""

import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from qtibridge.schemas.question import QTIOption, QTIQuestion, QuestionType, RoleMapping
from qtibridge.services.importer.cells import cell_text, has_value
from qtibridge.services.importer.classifier import resolve_rule_type
from qtibridge.services.importer.validators import is_numeric, split_order_items
from qtibridge.services.qti.xml_utils import escape_xml, qti_namespace

OPTION_LABELS = "ABCDEFGH"
TRUE_ANSWERS = frozenset({"true", "t", "yes", "y"})
TITLE_MAX_LENGTH = 100

SCHEMA_LOCATIONS = {
    "2.1": "http://www.imsglobal.org/xsd/qti/qtiv2p1/imsqti_v2p1.xsd",
    "2.2": "http://www.imsglobal.org/xsd/qti/qtiv2p2/imsqti_v2p2.xsd",
}
RESPONSE_PROCESSING_TEMPLATES = {
    "2.1": "http://www.imsglobal.org/question/qti_v2p1/rptemplates/match_correct",
    "2.2": "http://www.imsglobal.org/question/qti_v2p2/rptemplates/match_correct",
}

# Fields filled by a type processor
Processed = dict[str, Any]


@dataclass(frozen=True)
class QTIOutput:
    """Converter output in the requested format."""

    version: str
    xml: str | None = None
    json: dict[str, Any] | None = None


def _letter_for(answer: str) -> str | None:
    token = answer.strip().upper()
    if len(token) == 1 and token in OPTION_LABELS:
        return token
    if len(token) == 1 and token in "12345678":
        return OPTION_LABELS[int(token) - 1]
    return None


def _labelled_options(row: Mapping[str, Any], mapping: RoleMapping) -> list[QTIOption]:
    options = []
    for index, col in enumerate(mapping.option_cols or ()):
        content = cell_text(row, col)
        if content and index < len(OPTION_LABELS):
            label = OPTION_LABELS[index]
            options.append(QTIOption(id=label, label=f"Option {label}", content=content))
    return options


def _mark_correct(options: list[QTIOption], correct_ids: set[str]) -> list[QTIOption]:
    return [opt.model_copy(update={"correct": opt.id in correct_ids}) for opt in options]


def _process_mcq(row: Mapping[str, Any], mapping: RoleMapping) -> Processed:
    options = _labelled_options(row, mapping)
    correct_id = _letter_for(cell_text(row, mapping.answer_col))
    if correct_id is None:
        return {"options": options}
    return {"options": _mark_correct(options, {correct_id}), "correct_answer": correct_id}


def _process_msq(row: Mapping[str, Any], mapping: RoleMapping) -> Processed:
    options = _labelled_options(row, mapping)
    tokens = cell_text(row, mapping.answer_col).split(",")
    letters = [letter for letter in (_letter_for(t) for t in tokens) if letter]
    if not letters:
        return {"options": options}
    return {"options": _mark_correct(options, set(letters)), "correct_answer": ",".join(letters)}


def _process_true_false(row: Mapping[str, Any], mapping: RoleMapping) -> Processed:
    options = [
        QTIOption(id="T", label="True", content="True"),
        QTIOption(id="F", label="False", content="False"),
    ]
    if not has_value(row, mapping.answer_col):
        return {"options": options}
    answer = cell_text(row, mapping.answer_col)
    letter = _letter_for(answer)
    if letter is not None:
        # A letter or number answer names an option cell; its text decides
        option_cols = mapping.option_cols or ()
        index = OPTION_LABELS.index(letter)
        if index < len(option_cols) and has_value(row, option_cols[index]):
            answer = cell_text(row, option_cols[index])
    correct_id = "T" if answer.lower() in TRUE_ANSWERS else "F"
    return {"options": _mark_correct(options, {correct_id}), "correct_answer": correct_id}


def _process_short_answer(row: Mapping[str, Any], mapping: RoleMapping) -> Processed:
    if not has_value(row, mapping.answer_col):
        return {}
    return {"correct_answer": cell_text(row, mapping.answer_col)}


def _process_order(row: Mapping[str, Any], mapping: RoleMapping) -> Processed:
    items = split_order_items(cell_text(row, mapping.order_col))
    options = [
        QTIOption(id=f"ITEM_{index + 1}", label=f"Item {index + 1}", content=item)
        for index, item in enumerate(items)
    ]
    if not options:
        return {}
    return {"options": options, "correct_answer": ",".join(opt.id for opt in options)}


PROCESSORS = {
    QuestionType.MCQ: _process_mcq,
    QuestionType.MSQ: _process_msq,
    QuestionType.TRUE_FALSE: _process_true_false,
    QuestionType.SHORT_ANSWER: _process_short_answer,
    QuestionType.ORDER: _process_order,
}


def _parse_points(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def convert_to_qti_question(
    row: Mapping[str, Any], question_type: str, mapping: RoleMapping
) -> QTIQuestion:
    """
    Convert a row into the intermediate question shape.

    Args:
        row: Raw row with an `id`
        question_type: Detected or declared type (e.g. "mcq", "order")
        mapping: Column role mapping

    Returns:
        QTIQuestion; unrecognised types carry only the stem and metadata
    """
    question_id = cell_text(row, "id") or f"q_{int(time.time() * 1000)}"
    text = cell_text(row, mapping.question_col)

    fields: dict[str, Any] = {
        "id": question_id,
        "type": question_type,
        "title": text[:TITLE_MAX_LENGTH] or f"Question {question_id}",
        "question_text": text,
        "metadata": {},
    }

    if has_value(row, mapping.points_col):
        fields["points"] = _parse_points(cell_text(row, mapping.points_col))
    if has_value(row, mapping.difficulty_col):
        fields["difficulty"] = cell_text(row, mapping.difficulty_col)
    if has_value(row, mapping.solution_col):
        fields["explanation"] = cell_text(row, mapping.solution_col)
    if has_value(row, mapping.subject_col):
        fields["metadata"]["subject"] = cell_text(row, mapping.subject_col)
    if has_value(row, mapping.topic_col):
        fields["metadata"]["topic"] = cell_text(row, mapping.topic_col)
    if has_value(row, mapping.tolerance_col):
        fields["metadata"]["tolerance"] = cell_text(row, mapping.tolerance_col)

    rule_type = resolve_rule_type(question_type)
    if rule_type is not None:
        fields.update(PROCESSORS[rule_type](row, mapping))

    return QTIQuestion(**fields)


def _response_declaration(question: QTIQuestion, rule_type: QuestionType | None) -> list[str]:
    answer = question.correct_answer
    if rule_type in (QuestionType.MCQ, QuestionType.TRUE_FALSE):
        cardinality, base_type, values = "single", "identifier", [answer] if answer else []
    elif rule_type == QuestionType.MSQ:
        cardinality, base_type, values = "multiple", "identifier", answer.split(",") if answer else []
    elif rule_type == QuestionType.ORDER:
        cardinality, base_type, values = "ordered", "identifier", answer.split(",") if answer else []
    elif rule_type == QuestionType.SHORT_ANSWER:
        base_type = "float" if answer and is_numeric(answer) else "string"
        cardinality, values = "single", [answer] if answer else []
    else:
        return []

    lines = [
        f'  <responseDeclaration identifier="RESPONSE" cardinality="{cardinality}" baseType="{base_type}">'
    ]
    if values:
        lines.append("    <correctResponse>")
        lines.extend(f"      <value>{escape_xml(value)}</value>" for value in values)
        lines.append("    </correctResponse>")
    lines.append("  </responseDeclaration>")
    return lines


def _interaction(question: QTIQuestion, rule_type: QuestionType | None) -> list[str]:
    options = question.options or []
    choices = [
        f'        <simpleChoice identifier="{escape_xml(opt.id)}">{escape_xml(opt.content)}</simpleChoice>'
        for opt in options
    ]
    if rule_type in (QuestionType.MCQ, QuestionType.TRUE_FALSE, QuestionType.MSQ) and options:
        max_choices = "0" if rule_type == QuestionType.MSQ else "1"
        return [
            f'      <choiceInteraction responseIdentifier="RESPONSE" shuffle="false" maxChoices="{max_choices}">',
            *choices,
            "      </choiceInteraction>",
        ]
    if rule_type == QuestionType.ORDER and options:
        return [
            '      <orderInteraction responseIdentifier="RESPONSE" shuffle="true">',
            *choices,
            "      </orderInteraction>",
        ]
    if rule_type == QuestionType.SHORT_ANSWER:
        return ['      <p><textEntryInteraction responseIdentifier="RESPONSE" expectedLength="20"/></p>']
    return []


def generate_qti_xml(question: QTIQuestion, version: str = "2.1") -> str:
    """Render the intermediate question as a QTI 2.1 or 2.2 assessment item."""
    namespace = qti_namespace(version)
    rule_type = resolve_rule_type(question.type)
    response = _response_declaration(question, rule_type)

    score_attrs = ""
    if question.points is not None:
        score_attrs = f' normalMaximum="{question.points:g}"'

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<assessmentItem xmlns="{namespace}"',
        '  xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"',
        f'  xsi:schemaLocation="{namespace} {SCHEMA_LOCATIONS[version]}"',
        f'  identifier="{escape_xml(question.id)}"',
        f'  title="{escape_xml(question.title)}"',
        '  adaptive="false"',
        '  timeDependent="false">',
        *response,
        f'  <outcomeDeclaration identifier="SCORE" cardinality="single" baseType="float"{score_attrs}>',
        "    <defaultValue>",
        "      <value>0</value>",
        "    </defaultValue>",
        "  </outcomeDeclaration>",
        "  <itemBody>",
        "    <div>",
        f"      <p>{escape_xml(question.question_text)}</p>",
        *_interaction(question, rule_type),
        "    </div>",
    ]

    if question.explanation:
        lines.extend(
            [
                '    <feedbackBlock identifier="fb1" outcomeIdentifier="ANSWER_FEEDBACK" showHide="show">',
                f"      <p>{escape_xml(question.explanation)}</p>",
                "    </feedbackBlock>",
            ]
        )
    lines.append("  </itemBody>")

    if response:
        lines.append(f'  <responseProcessing template="{RESPONSE_PROCESSING_TEMPLATES[version]}"/>')
    lines.append("</assessmentItem>")
    return "\n".join(lines)


def generate_qti(
    question: QTIQuestion,
    version: str = "2.1",
    format: Literal["xml", "json"] = "xml",
) -> QTIOutput:
    """Generate converter output in the requested format."""
    if format == "json":
        return QTIOutput(version=version, json=question.model_dump(mode="json"))
    return QTIOutput(version=version, xml=generate_qti_xml(question, version))
