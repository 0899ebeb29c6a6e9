"""Tests for structural validation of generated items."""

from qtibridge.services.qti.xml_validator import validate_mcq_structure, validate_xml

NS = "http://www.imsglobal.org/xsd/imsqti_v2p1"

VALID_ITEM = f"""<?xml version="1.0" encoding="UTF-8"?>
<assessmentItem xmlns="{NS}" identifier="q1" title="t" adaptive="false" timeDependent="false">
  <responseDeclaration identifier="RESPONSE" cardinality="single" baseType="identifier">
    <correctResponse><value>A</value></correctResponse>
  </responseDeclaration>
  <itemBody>
    <choiceInteraction responseIdentifier="RESPONSE" shuffle="true" maxChoices="1">
      <prompt>Pick</prompt>
      <simpleChoice identifier="A">One</simpleChoice>
      <simpleChoice identifier="B">Two</simpleChoice>
    </choiceInteraction>
  </itemBody>
</assessmentItem>"""


def _messages(xml):
    return [e.message for e in validate_xml(xml)]


def test_valid_item():
    assert validate_xml(VALID_ITEM) == []
    assert validate_mcq_structure(VALID_ITEM)


def test_malformed_xml_reports_position():
    errors = validate_xml("<assessmentItem><itemBody></assessmentItem>")

    assert len(errors) == 1
    assert errors[0].message.startswith("Malformed XML")
    assert errors[0].line == 1


def test_wrong_root_element():
    assert _messages(f'<item xmlns="{NS}"/>') == ["Expected root element 'assessmentItem', got 'item'"]


def test_missing_namespace_and_identifier():
    xml = VALID_ITEM.replace(f' xmlns="{NS}"', "").replace(' identifier="q1"', "")
    messages = _messages(xml)

    assert "Missing required attribute: xmlns" in messages
    assert "Missing required attribute: identifier" in messages


def test_missing_response_declaration():
    xml = f'<assessmentItem xmlns="{NS}" identifier="q1"><itemBody/></assessmentItem>'
    messages = _messages(xml)

    assert "Missing required element: responseDeclaration" in messages
    assert "Missing choiceInteraction in itemBody" in messages


def test_missing_correct_response():
    xml = VALID_ITEM.replace("<correctResponse><value>A</value></correctResponse>", "")
    assert _messages(xml) == ["Missing correctResponse in responseDeclaration"]


def test_missing_item_body():
    start = VALID_ITEM.index("<itemBody>")
    end = VALID_ITEM.index("</itemBody>") + len("</itemBody>")
    xml = VALID_ITEM[:start] + VALID_ITEM[end:]

    assert _messages(xml) == ["Missing required element: itemBody"]


def test_too_few_choices():
    xml = VALID_ITEM.replace('<simpleChoice identifier="B">Two</simpleChoice>', "")
    assert _messages(xml) == ["At least 2 options required, found 1"]


def test_entity_declarations_are_refused():
    xml = (
        '<?xml version="1.0"?>'
        '<!DOCTYPE assessmentItem [<!ENTITY boom "boom">]>'
        f'<assessmentItem xmlns="{NS}" identifier="q1">&boom;</assessmentItem>'
    )
    errors = validate_xml(xml)

    assert len(errors) == 1
    assert errors[0].message.startswith("XML parsing failed")
    assert not validate_mcq_structure(xml)
