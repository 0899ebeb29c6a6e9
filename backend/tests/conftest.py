"""Pytest configuration and shared fixtures."""

import os
from collections.abc import Generator
from typing import Any

import pytest

os.environ.setdefault("ENV", "test")

from fastapi.testclient import TestClient  # noqa: E402

from qtibridge.main import create_app  # noqa: E402
from qtibridge.schemas.question import Question, RoleMapping  # noqa: E402
from qtibridge.services.importer import detect_question_columns  # noqa: E402
from tests.helpers.factories import SHEET_COLUMNS, make_question, make_row  # noqa: E402


@pytest.fixture
def sheet_columns() -> list[str]:
    return list(SHEET_COLUMNS)


@pytest.fixture
def mapping() -> RoleMapping:
    """Role mapping detected from the standard sheet columns."""
    return detect_question_columns(SHEET_COLUMNS)


@pytest.fixture
def mcq_row() -> dict[str, Any]:
    return make_row()


@pytest.fixture
def question() -> Question:
    return make_question()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client for a fresh app instance."""
    with TestClient(create_app()) as c:
        yield c
