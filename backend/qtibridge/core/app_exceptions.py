"""Application-specific exceptions for consistent error handling."""

from typing import Any

from fastapi import HTTPException, status

# Error codes (stable, part of the API contract)
BATCH_TOO_LARGE = "BATCH_TOO_LARGE"
MAPPING_REQUIRED = "MAPPING_REQUIRED"
DUPLICATE_QUESTION_ID = "DUPLICATE_QUESTION_ID"


class AppError(HTTPException):
    """HTTP error carrying a stable error code."""

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | list[Any] | None = None,
    ):
        super().__init__(
            status_code=status_code,
            detail={"code": code, "message": message, "details": details},
        )
        self.code = code
        self.message = message
        self.details = details


def raise_app_error(
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | list[Any] | None = None,
) -> None:
    """Raise an application error with standardized format."""
    raise AppError(status_code=status_code, code=code, message=message, details=details)


def raise_batch_too_large(size: int, limit: int) -> None:
    """Reject a batch above the configured size cap (413)."""
    raise_app_error(
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        BATCH_TOO_LARGE,
        f"Batch of {size} items exceeds the limit of {limit}",
        {"size": size, "limit": limit},
    )


def raise_mapping_required() -> None:
    """Reject a row payload that carries neither columns nor a mapping (422)."""
    raise_app_error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        MAPPING_REQUIRED,
        "Provide either 'columns' or 'mapping'",
    )


def raise_duplicate_question_ids(ids: list[str]) -> None:
    """Reject a generation batch whose question ids collide (422)."""
    raise_app_error(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        DUPLICATE_QUESTION_ID,
        "Question ids must be unique within a batch",
        {"ids": ids},
    )
