"""QTI engine: MCQ builder, structural validator, legacy converter and JSON export."""

from qtibridge.services.qti.generation import (
    generate_batch_report,
    generate_qti_for_question,
    generate_qti_for_upload,
    validate_questions_for_generation,
)
from qtibridge.services.qti.mcq_builder import (
    MCQBuilder,
    QTIGenerationError,
    generate_and_validate_mcq,
    generate_mcq_xml,
)
from qtibridge.services.qti.xml_validator import validate_xml

__all__ = [
    "generate_batch_report",
    "generate_qti_for_question",
    "generate_qti_for_upload",
    "validate_questions_for_generation",
    "MCQBuilder",
    "QTIGenerationError",
    "generate_and_validate_mcq",
    "generate_mcq_xml",
    "validate_xml",
]
