"""
Test fixtures and utilities for the assistant tests.

This module provides shared fixtures including temporary workbooks, a
scripted stand-in for the completion client, and service instances.
"""

import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
import xlsxwriter

from sheet2sql.adapters.calamine_adapter import CalamineAdapter
from sheet2sql.config import AssistantSettings
from sheet2sql.exceptions.assistant_exceptions import CompletionError
from sheet2sql.models.knowledge_models import ParsedKnowledge
from sheet2sql.services.assistant_service import AssistantService
from sheet2sql.services.knowledge_service import KnowledgeService


class FakeCompletionClient:
    """Returns scripted completions in order and records every request."""

    model = "fake-model"

    def __init__(self, responses: list[Any] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []

    def complete(self, messages: list[dict[str, str]], temperature: float, max_tokens: int) -> str:
        self.calls.append(
            {
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if not self.responses:
            raise CompletionError(model=self.model, reason="No scripted response left")

        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def settings() -> AssistantSettings:
    """Settings that never depend on the real environment."""
    return AssistantSettings(
        api_key="test-key",
        base_url="https://llm.invalid/v1",
        model="test-model",
        request_timeout_s=5,
        max_retries=0,
        sample_rows=5,
        log_level="DEBUG",
    )


@pytest.fixture
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def knowledge_service(fake_client: FakeCompletionClient) -> KnowledgeService:
    return KnowledgeService(fake_client, sample_rows=5)


@pytest.fixture
def assistant_service(settings: AssistantSettings, fake_client: FakeCompletionClient) -> AssistantService:
    """AssistantService whose model calls go to the fake client."""
    return AssistantService(settings=settings, completion_client=fake_client)


@pytest.fixture
def calamine_adapter() -> CalamineAdapter:
    return CalamineAdapter()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_workbook_file(temp_dir: Path) -> Path:
    """
    Create a requirements workbook with three sheets.

    - Tables: a dense 3x4 block starting at A1
    - Rules: sparse cells A1, C1, B3 and a boolean at C3
    - Notes: empty
    """
    file_path = temp_dir / "requirements.xlsx"

    workbook = xlsxwriter.Workbook(str(file_path))

    tables = workbook.add_worksheet("Tables")
    tables.write_row(0, 0, ["Table", "Column", "Type"])
    tables.write_row(1, 0, ["customers", "id", "INTEGER"])
    tables.write_row(2, 0, ["customers", "email", "VARCHAR(255)"])
    tables.write_row(3, 0, ["orders", "amount", 12.5])

    rules = workbook.add_worksheet("Rules")
    rules.write(0, 0, "Rule")
    rules.write(0, 2, "Active")
    rules.write(2, 1, 30)
    rules.write_boolean(2, 2, True)

    workbook.add_worksheet("Notes")

    workbook.close()
    return file_path


@pytest.fixture
def sample_knowledge() -> ParsedKnowledge:
    """A small knowledge base in the camelCase shape the model returns."""
    return ParsedKnowledge.model_validate(
        {
            "tableSpecifications": [
                {
                    "tableName": "customers",
                    "columns": [
                        {"name": "id", "dataType": "INTEGER", "isNullable": False, "isPrimaryKey": True},
                        {"name": "email", "dataType": "VARCHAR(255)", "isNullable": True, "isPrimaryKey": False},
                    ],
                    "constraints": [],
                    "relationships": [],
                }
            ],
            "functionalRequirements": [
                {
                    "id": "FR1",
                    "description": "Customers have unique emails",
                    "businessLogic": "email is unique across customers",
                    "transformations": [],
                }
            ],
            "businessRules": [
                {
                    "id": "BR1",
                    "rule": "Email required for active customers",
                    "sqlCondition": "status <> 'active' OR email IS NOT NULL",
                    "validationType": "CHECK",
                }
            ],
            "testScenarios": [],
        }
    )
