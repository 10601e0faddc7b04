"""
Tests for the FastAPI REST API.

Tests the HTTP endpoints with the completion client replaced by a fake.
"""

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from fastapi.testclient import TestClient

from sheet2sql import main
from sheet2sql.main import app
from sheet2sql.models.knowledge_models import ParsedKnowledge
from sheet2sql.services.assistant_service import AssistantService

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def client(assistant_service: AssistantService) -> Generator[TestClient, None, None]:
    """Create a test client whose service uses the fake completion client."""
    with TestClient(app) as c:
        # the lifespan has installed its own service by now
        main.assistant_service = assistant_service
        yield c


def upload(path: Path, name: str | None = None) -> dict[str, Any]:
    return {"file": (name or path.name, path.read_bytes(), XLSX_MEDIA_TYPE)}


class TestHealthEndpoint:
    """Tests for the health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        """Test the health check endpoint."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["model"] == "test-model"
        assert data["api_key_configured"] is True
        assert "api_key" not in data
        assert "timestamp" in data


class TestWorkbookEndpoints:
    """Tests for workbook upload endpoints."""

    def test_list_sheets(self, client: TestClient, sample_workbook_file: Path) -> None:
        """Test listing the sheets of an uploaded workbook."""
        response = client.post("/workbook/sheets", files=upload(sample_workbook_file))

        assert response.status_code == 200
        assert response.json() == ["Tables", "Rules", "Notes"]

    def test_workbook_text(self, client: TestClient, sample_workbook_file: Path) -> None:
        """Test serializing an uploaded workbook."""
        response = client.post(
            "/workbook/text",
            files=upload(sample_workbook_file, "upload sheet.xlsx"),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["file_name"] == "upload sheet.xlsx"
        assert data["sheet_count"] == 3
        assert "\nSheet: Rules\nRule\tActive\t\n\n30\ttrue\t\n" in data["text"]

    def test_workbook_range(self, client: TestClient, sample_workbook_file: Path) -> None:
        """Test serializing one range of an uploaded workbook."""
        response = client.post(
            "/workbook/range",
            params={"cell_range": "A1:C3", "sheet_name": "Rules"},
            files=upload(sample_workbook_file),
        )

        assert response.status_code == 200
        data = response.json()
        assert data["cell_range"] == "A1:C3"
        assert data["text"] == "Rule\tActive\t\n\n30\ttrue\t\n"

    def test_reversed_range_is_bad_request(self, client: TestClient, sample_workbook_file: Path) -> None:
        """Test that a reversed range maps to 400 INVALID_RANGE."""
        response = client.post(
            "/workbook/range",
            params={"cell_range": "C3:A1"},
            files=upload(sample_workbook_file),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "INVALID_RANGE"

    def test_whole_sheet_range_is_bad_request(self, client: TestClient, sample_workbook_file: Path) -> None:
        """Test that a range over the cell limit maps to 400 INVALID_RANGE."""
        response = client.post(
            "/workbook/range",
            params={"cell_range": "A1:XFD1048576"},
            files=upload(sample_workbook_file),
        )

        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "INVALID_RANGE"
        assert data["details"]["cell_range"] == "A1:XFD1048576"

    def test_malformed_range_is_bad_request(self, client: TestClient, sample_workbook_file: Path) -> None:
        response = client.post(
            "/workbook/range",
            params={"cell_range": "1A"},
            files=upload(sample_workbook_file),
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_FORMAT"

    def test_missing_sheet_is_not_found(self, client: TestClient, sample_workbook_file: Path) -> None:
        response = client.post(
            "/workbook/range",
            params={"cell_range": "A1", "sheet_name": "Missing"},
            files=upload(sample_workbook_file),
        )

        assert response.status_code == 404
        assert response.json()["error_code"] == "SHEET_NOT_FOUND"

    def test_unsupported_extension(self, client: TestClient, temp_dir: Path) -> None:
        """Test that non-spreadsheet uploads are rejected before reading."""
        text_file = temp_dir / "notes.txt"
        text_file.write_text("not a workbook")

        response = client.post("/workbook/text", files=upload(text_file))

        assert response.status_code == 400
        assert response.json()["detail"]["error_code"] == "INVALID_FILE_FORMAT"


class TestExtractEndpoint:
    """Tests for the JSON recovery endpoint."""

    def test_extract_success(self, client: TestClient) -> None:
        response = client.post("/extract", json={"raw_text": 'here is the data: {"a":1} thanks'})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["value"] == {"a": 1}

    def test_extract_failure_is_still_ok(self, client: TestClient) -> None:
        response = client.post("/extract", json={"raw_text": "not json at all", "expect": "array"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "MALFORMED_PAYLOAD"
        assert data["raw_text"] == "not json at all"

    def test_extract_rejects_unknown_shape(self, client: TestClient) -> None:
        response = client.post("/extract", json={"raw_text": "{}", "expect": "string"})

        assert response.status_code == 422


class TestChatEndpoint:
    """Tests for the canned chat endpoint."""

    def test_chat(self, client: TestClient) -> None:
        response = client.post("/chat", json={"message": "Calculate averages"})

        assert response.status_code == 200
        data = response.json()
        assert data["sql_query"].startswith("SELECT AVG(amount)")
        assert data["content"].startswith("Based on your request")

    @pytest.mark.parametrize("message", ["", "   "])
    def test_blank_message_is_rejected(self, client: TestClient, message: str) -> None:
        response = client.post("/chat", json={"message": message})

        assert response.status_code == 422

    def test_chat_prompts(self, client: TestClient) -> None:
        """Test that the greeting and starter prompts are served."""
        response = client.get("/chat/prompts")

        assert response.status_code == 200
        data = response.json()
        assert data["greeting"].startswith("Hi! I'm ready to help")
        assert data["suggested_prompts"] == [
            "Show me all the data",
            "Count total records",
            "Find duplicates",
            "Group by category",
            "Calculate averages",
        ]

    def test_starter_prompt_gets_a_suggestion(self, client: TestClient) -> None:
        prompt = client.get("/chat/prompts").json()["suggested_prompts"][2]

        response = client.post("/chat", json={"message": prompt})

        assert response.status_code == 200
        assert "HAVING COUNT(*) > 1" in response.json()["sql_query"]


class TestKnowledgeEndpoints:
    """Tests for the model-backed endpoints."""

    def test_parse_knowledge(
        self,
        client: TestClient,
        fake_client: Any,
        sample_workbook_file: Path,
    ) -> None:
        """Test parsing an uploaded workbook into a camelCase knowledge base."""
        fake_client.responses.extend(
            [
                '```json\n{"tableSpecifications": [{"tableName": "customers", "columns": []}]}\n```',
                '[{"id": "TS1", "name": "Smoke", "testQueries": ["SELECT 1"]}]',
            ]
        )

        response = client.post("/knowledge/parse", files=upload(sample_workbook_file))

        assert response.status_code == 200
        data = response.json()
        assert data["tableSpecifications"][0]["tableName"] == "customers"
        assert data["testScenarios"][0]["testQueries"][0]["query"] == "SELECT 1"

    def test_parse_knowledge_malformed_reply(
        self,
        client: TestClient,
        fake_client: Any,
        sample_workbook_file: Path,
    ) -> None:
        """Test that an unusable model reply maps to 502."""
        fake_client.responses.append("Sorry, I cannot help with that.")

        response = client.post("/knowledge/parse", files=upload(sample_workbook_file))

        assert response.status_code == 502
        data = response.json()
        assert data["error_code"] == "MALFORMED_PAYLOAD"
        assert data["details"]["raw_text_preview"] == "Sorry, I cannot help with that."

    def test_generate_queries(
        self,
        client: TestClient,
        fake_client: Any,
        sample_knowledge: ParsedKnowledge,
    ) -> None:
        fake_client.responses.append('[{"query": "SELECT email FROM customers", "category": "select"}]')

        response = client.post(
            "/queries/generate",
            json={
                "knowledge": sample_knowledge.model_dump(mode="json", by_alias=True),
                "user_request": "List emails",
                "uploaded_data": [{"email": "a@example.com"}],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data[0]["query"] == "SELECT email FROM customers"
        assert data[0]["category"] == "SELECT"
        assert data[0]["id"].startswith("query_")

    def test_generate_queries_completion_error(
        self,
        client: TestClient,
        sample_knowledge: ParsedKnowledge,
    ) -> None:
        """Test that a failed model call maps to 502 COMPLETION_ERROR."""
        response = client.post(
            "/queries/generate",
            json={
                "knowledge": sample_knowledge.model_dump(mode="json", by_alias=True),
                "user_request": "List emails",
            },
        )

        assert response.status_code == 502
        assert response.json()["error_code"] == "COMPLETION_ERROR"

    def test_generate_scenarios(
        self,
        client: TestClient,
        fake_client: Any,
        sample_knowledge: ParsedKnowledge,
    ) -> None:
        fake_client.responses.append('[{"id": "TS1", "expectedResults": ["one row"]}]')

        response = client.post(
            "/scenarios/generate",
            json=sample_knowledge.model_dump(mode="json", by_alias=True),
        )

        assert response.status_code == 200
        assert response.json()[0]["id"] == "TS1"

    def test_missing_api_key_is_service_unavailable(
        self,
        client: TestClient,
        settings: Any,
        sample_knowledge: ParsedKnowledge,
    ) -> None:
        """Test that model-backed endpoints report 503 without a key."""
        main.assistant_service = AssistantService(settings=settings.model_copy(update={"api_key": ""}))

        response = client.post(
            "/scenarios/generate",
            json=sample_knowledge.model_dump(mode="json", by_alias=True),
        )

        assert response.status_code == 503
        assert response.json()["error_code"] == "CONFIGURATION_ERROR"


class TestDownloadEndpoint:
    """Tests for the .sql download endpoint."""

    def test_download_query(self, client: TestClient) -> None:
        response = client.post(
            "/queries/download",
            json={"query": "SELECT 1;", "description": "Smoke test"},
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/sql")
        assert 'filename="query.sql"' in response.headers["content-disposition"]
        assert response.text.startswith("-- Smoke test\n-- Generated on ")
        assert response.text.endswith("\n\nSELECT 1;")
