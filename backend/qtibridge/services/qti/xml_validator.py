"""
Structural validation of generated QTI items.

Re-parses emitted XML and checks the contract the MCQ builder guarantees:
an `assessmentItem` root carrying a namespace and an identifier, a
`responseDeclaration` with a `correctResponse`, and an `itemBody` whose
`choiceInteraction` holds at least two `simpleChoice` elements. This is
not general schema validation.
"""

from dataclasses import dataclass
from xml.etree.ElementTree import Element, ParseError

from defusedxml import DefusedXmlException
from defusedxml import ElementTree as DefusedET

MIN_SIMPLE_CHOICES = 2


@dataclass(frozen=True)
class XMLValidationError:
    """Structural problem found in generated XML."""

    message: str
    line: int | None = None
    column: int | None = None


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _find_descendant(element: Element, name: str) -> Element | None:
    for child in element.iter():
        if child is not element and _local_name(child.tag) == name:
            return child
    return None


def _count_descendants(element: Element, name: str) -> int:
    return sum(1 for child in element.iter() if child is not element and _local_name(child.tag) == name)


def validate_xml(xml: str) -> list[XMLValidationError]:
    """
    Parse and validate a QTI assessment item.

    Args:
        xml: Generated XML document

    Returns:
        List of structural errors (empty if the item is compliant)
    """
    try:
        root = DefusedET.fromstring(xml.encode("utf-8"))
    except ParseError as e:
        line, column = getattr(e, "position", (None, None))
        return [XMLValidationError(message=f"Malformed XML: {e}", line=line, column=column)]
    except DefusedXmlException as e:
        return [XMLValidationError(message=f"XML parsing failed: {e}")]

    local = _local_name(root.tag)
    if local != "assessmentItem":
        return [XMLValidationError(message=f"Expected root element 'assessmentItem', got '{local}'")]

    errors: list[XMLValidationError] = []

    # ElementTree folds xmlns into the tag as "{uri}name"
    if not root.tag.startswith("{"):
        errors.append(XMLValidationError(message="Missing required attribute: xmlns"))

    if "identifier" not in root.attrib:
        errors.append(XMLValidationError(message="Missing required attribute: identifier"))

    response_decl = _find_descendant(root, "responseDeclaration")
    if response_decl is None:
        errors.append(XMLValidationError(message="Missing required element: responseDeclaration"))

    item_body = _find_descendant(root, "itemBody")
    if item_body is None:
        errors.append(XMLValidationError(message="Missing required element: itemBody"))

    if response_decl is not None and _find_descendant(response_decl, "correctResponse") is None:
        errors.append(XMLValidationError(message="Missing correctResponse in responseDeclaration"))

    if item_body is not None:
        interaction = _find_descendant(item_body, "choiceInteraction")
        if interaction is None:
            errors.append(XMLValidationError(message="Missing choiceInteraction in itemBody"))
        else:
            choices = _count_descendants(interaction, "simpleChoice")
            if choices < MIN_SIMPLE_CHOICES:
                errors.append(
                    XMLValidationError(
                        message=f"At least {MIN_SIMPLE_CHOICES} options required, found {choices}"
                    )
                )

    return errors


def validate_mcq_structure(xml: str) -> bool:
    """True when the XML passes every structural check."""
    return not validate_xml(xml)
