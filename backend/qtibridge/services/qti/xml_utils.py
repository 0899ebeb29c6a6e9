"""XML helpers for QTI generation."""

import re
import string

# Substitution order matters: ampersand first so entities are not re-escaped
XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

MAX_IDENTIFIER_INDEX = 25

QTI_NAMESPACES = {
    "2.1": "http://www.imsglobal.org/xsd/imsqti_v2p1",
    "2.2": "http://www.imsglobal.org/xsd/imsqti_v2p2",
}

_NUMBER_RE = re.compile(r"^\d+$")


def escape_xml(text: object) -> str:
    """Escape XML special characters. None renders as an empty string."""
    if text is None:
        return ""
    escaped = str(text)
    for char, entity in XML_ESCAPES:
        escaped = escaped.replace(char, entity)
    return escaped


def index_to_identifier(index: int) -> str:
    """Convert index to letter identifier (0=A, 1=B, ...)."""
    if index < 0 or index > MAX_IDENTIFIER_INDEX:
        raise ValueError("Index must be between 0 and 25")
    return string.ascii_uppercase[index]


def identifier_to_index(identifier: str) -> int:
    """Convert letter identifier to index (A=0, B=1, ...)."""
    upper = identifier.upper()
    if len(upper) != 1 or upper not in string.ascii_uppercase:
        raise ValueError("Identifier must be a single letter A-Z")
    return string.ascii_uppercase.index(upper)


def is_valid_identifier(identifier: str) -> bool:
    """True for a single letter A-Z or a number 1-26."""
    upper = identifier.upper()
    if len(upper) == 1 and upper in string.ascii_uppercase:
        return True
    if _NUMBER_RE.match(upper):
        return 1 <= int(upper) <= MAX_IDENTIFIER_INDEX + 1
    return False


def answer_to_index(answer: str) -> int:
    """
    0-based option index for a letter (A-Z) or 1-based number (1-26) answer.

    Raises:
        ValueError: If the answer is neither
    """
    upper = answer.strip().upper()
    if not is_valid_identifier(upper):
        raise ValueError(f'Invalid answer identifier: "{upper}"')
    if _NUMBER_RE.match(upper):
        return int(upper) - 1
    return identifier_to_index(upper)


def qti_namespace(version: str) -> str:
    """Namespace URI for a supported QTI version."""
    try:
        return QTI_NAMESPACES[version]
    except KeyError:
        raise ValueError(
            f"Unsupported QTI version '{version}' (expected one of {', '.join(QTI_NAMESPACES)})"
        ) from None
