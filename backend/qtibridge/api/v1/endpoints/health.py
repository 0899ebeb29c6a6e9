"""Health endpoint."""

from typing import Literal

from fastapi import APIRouter, status
from pydantic import BaseModel

from qtibridge import __version__
from qtibridge.core.config import settings

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok"] = "ok"
    version: str
    qti_default_version: str
    rule_version: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Simple health check endpoint. Returns 200 if the API is running.",
)
async def health_check() -> HealthResponse:
    """Health check endpoint - just checks if the process is alive."""
    return HealthResponse(
        status="ok",
        version=__version__,
        qti_default_version=settings.QTI_DEFAULT_VERSION,
        rule_version=settings.VALIDATION_RULE_VERSION,
    )
