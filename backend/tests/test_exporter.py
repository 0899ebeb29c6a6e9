"""Tests for row-level QTI and JSON export."""

import pytest
from defusedxml import ElementTree as DefusedET

from qtibridge.schemas.question import GenerationError, ValidationStatus
from qtibridge.services.exporter import (
    EXPORT_ERROR,
    export_rows_to_json,
    export_rows_to_qti,
)
from qtibridge.services.importer import assign_row_ids, detect_question_columns, validate_all_questions
from qtibridge.services.qti.generation import INVALID_STATUS
from qtibridge.services.qti.mcq_builder import GenerationOutcome
from tests.helpers.factories import SHEET_COLUMNS, make_row

NS = "{http://www.imsglobal.org/xsd/imsqti_v2p1}"


@pytest.fixture
def full_mapping():
    return detect_question_columns([*SHEET_COLUMNS, "Type", "Order Items", "Tolerance"])


def _no_options(**overrides):
    row = make_row(**overrides)
    for col in ("Option A", "Option B", "Option C", "Option D"):
        row[col] = None
    return row


class TestExportRowsToQTI:
    def test_one_file_per_exportable_row(self, mapping):
        rows = [make_row(id="q1"), make_row(id="q2", **{"Correct Answer": "Z"}), make_row(id="q3")]

        export = export_rows_to_qti(rows, mapping)

        assert [f.filename for f in export.files] == ["q1.xml", "q3.xml"]
        assert (export.summary.total, export.summary.success, export.summary.failed) == (3, 2, 1)
        entry = export.summary.errors[0]
        assert entry.question_id == "q2"
        assert entry.error.code == INVALID_STATUS
        assert entry.error.details == ["Correct answer (Z) exceeds number of options (4)"]

    def test_mcq_rows_use_the_strict_builder(self, mapping):
        export = export_rows_to_qti([make_row(**{"Correct Answer": "2"})], mapping)
        root = DefusedET.fromstring(export.files[0].content.encode("utf-8"))

        interaction = root.find(f"{NS}itemBody/{NS}choiceInteraction")
        assert interaction.get("shuffle") == "true"
        assert root.find(f"{NS}responseDeclaration/{NS}correctResponse/{NS}value").text == "B"

    def test_gap_in_options_is_renumbered(self, mapping):
        row = make_row(**{"Option A": None, "Correct Answer": "C"})
        xml = export_rows_to_qti([row], mapping).files[0].content
        root = DefusedET.fromstring(xml.encode("utf-8"))

        choices = root.findall(f"{NS}itemBody/{NS}choiceInteraction/{NS}simpleChoice")
        assert [c.text for c in choices] == ["Joule", "Pascal", "Watt"]
        assert root.find(f"{NS}responseDeclaration/{NS}correctResponse/{NS}value").text == "B"

    def test_other_types_use_the_legacy_converter(self, full_mapping):
        rows = [
            make_row(id="msq", Type="msq", **{"Correct Answer": "A,B"}),
            _no_options(id="short", Type="shortanswer", **{"Correct Answer": "Paris"}),
            _no_options(id="order", Type="order", **{"Order Items": "a, b, c"}),
        ]

        export = export_rows_to_qti(rows, full_mapping)

        assert export.summary.failed == 0
        contents = {f.filename: f.content for f in export.files}
        assert 'cardinality="multiple"' in contents["msq.xml"]
        assert "textEntryInteraction" in contents["short.xml"]
        assert "orderInteraction" in contents["order.xml"]

    def test_true_false_rows(self, mapping):
        row = make_row(**{"Option A": "Yes", "Option B": "No", "Option C": None, "Option D": None})
        row["Correct Answer"] = "yes"

        export = export_rows_to_qti([row], mapping)

        assert export.summary.success == 1
        assert "<value>T</value>" in export.files[0].content

    @pytest.mark.parametrize(("answer", "key"), [("A", "T"), ("1", "T"), ("B", "F"), ("2", "F")])
    def test_true_false_answered_by_option(self, mapping, answer, key):
        row = make_row(**{"Option A": "True", "Option B": "False", "Option C": None, "Option D": None})
        row["Correct Answer"] = answer

        export = export_rows_to_qti([row], mapping)

        assert export.summary.success == 1
        assert f"<value>{key}</value>" in export.files[0].content

    def test_caution_rows_are_exported(self, mapping):
        rows = [make_row(Subject=None), make_row(id="q2", Question=None)]
        results = validate_all_questions(rows, mapping)
        assert results[0].status == ValidationStatus.CAUTION
        assert [r.is_exportable for r in results] == [True, False]

        summary = export_rows_to_qti(rows, mapping, results=results).summary
        assert (summary.success, summary.failed) == (1, 1)
        assert summary.errors[0].error.code == INVALID_STATUS

    def test_stale_results_are_rejected(self, mapping):
        with pytest.raises(ValueError, match="Expected 2 validation results, got 0"):
            export_rows_to_qti([make_row(), make_row()], mapping, results=[])

    def test_filenames_are_sanitised_and_unique(self, mapping):
        rows = [make_row(id="a/b c"), make_row(id="a/b c"), make_row(id="../")]

        names = [f.filename for f in export_rows_to_qti(rows, mapping).files]

        assert names == ["a_b_c.xml", "a_b_c_2.xml", "Q3.xml"]

    def test_version_2_2(self, mapping):
        export = export_rows_to_qti(assign_row_ids([make_row(id=None)]), mapping, version="2.2")

        assert export.files[0].filename == "row_0.xml"
        assert "imsqti_v2p2" in export.files[0].content

    def test_unsupported_version(self, mapping):
        with pytest.raises(ValueError, match="Unsupported QTI version"):
            export_rows_to_qti([make_row()], mapping, version="1.0")

    def test_converter_failure_is_recorded(self, full_mapping, monkeypatch):
        def explode(question, version):
            raise RuntimeError("boom")

        monkeypatch.setattr("qtibridge.services.exporter.generate_qti_xml", explode)
        rows = [_no_options(id="s1", Type="shortanswer", **{"Correct Answer": "Paris"})]

        export = export_rows_to_qti(rows, full_mapping)

        assert export.files == []
        assert export.summary.errors[0].error.code == EXPORT_ERROR
        assert export.summary.errors[0].error.message == "boom"

    def test_builder_refusal_is_recorded(self, mapping, monkeypatch):
        refused = GenerationOutcome(
            error=GenerationError(code="MISSING_STEM", message="Question stem is required")
        )
        monkeypatch.setattr(
            "qtibridge.services.exporter.generate_and_validate_mcq", lambda question, version: refused
        )

        export = export_rows_to_qti([make_row(id="q1"), make_row(id="q2")], mapping)

        assert export.files == []
        assert (export.summary.success, export.summary.failed) == (0, 2)
        assert [e.question_id for e in export.summary.errors] == ["q1", "q2"]
        assert {e.error.code for e in export.summary.errors} == {"MISSING_STEM"}

    def test_answer_pointing_at_empty_option_fails(self, mapping):
        rows = [make_row(id="gap", **{"Option A": "", "Correct Answer": "A"}), make_row(id="ok")]
        results = validate_all_questions(rows, mapping)
        assert results[0].status == ValidationStatus.VALID

        export = export_rows_to_qti(rows, mapping, results=results)

        assert [f.filename for f in export.files] == ["ok.xml"]
        assert (export.summary.success, export.summary.failed) == (1, 1)
        entry = export.summary.errors[0]
        assert entry.question_id == "gap"
        assert entry.error.code == "MISSING_CORRECT_ANSWER"


class TestExportRowsToJSON:
    def test_document(self, mapping):
        rows = [make_row(id="q1"), make_row(id="q2", **{"Correct Answer": "Z"})]

        document = export_rows_to_json(rows, mapping)

        assert document["version"] == "1.0"
        assert [q["id"] for q in document["questions"]] == ["q1", "q2"]
        assert document["questions"][0]["type"] == "mcq"
        assert document["questions"][0]["correctAnswer"] == "A"

    def test_detected_type_drives_shape(self, full_mapping):
        rows = [_no_options(id="o", Type="order", **{"Order Items": "x, y"})]

        question = export_rows_to_json(rows, full_mapping)["questions"][0]

        assert question["type"] == "order"
        assert question["correctAnswer"] == "ITEM_1,ITEM_2"
