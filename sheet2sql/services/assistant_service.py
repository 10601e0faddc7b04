"""
Core assistant service layer.

This module provides the AssistantService class which serves as the single
entry point for both the FastAPI and MCP interfaces. It coordinates the
workbook reader, the text serializer, the response extractor, the canned
query matcher and the model-backed KnowledgeService.

Example:
    service = AssistantService(AssistantSettings.from_env())

    text = service.workbook_to_text("/path/to/requirements.xlsx")
    knowledge = service.analyze_workbook("/path/to/requirements.xlsx")
    queries = service.generate_queries(GenerateQueriesRequest(
        knowledge=knowledge,
        user_request="List orders above the credit limit",
    ))
"""

import logging
import time
from typing import Any

from sheet2sql.adapters.calamine_adapter import CalamineAdapter
from sheet2sql.config import AssistantSettings
from sheet2sql.core.addressing import parse_cell_range
from sheet2sql.core.extractor import extract
from sheet2sql.core.serializer import serialize, serialize_workbook
from sheet2sql.exceptions.assistant_exceptions import AssistantError, InvalidRangeError, ReadError
from sheet2sql.models.api_models import (
    ChatPrompts,
    ChatReply,
    GenerateQueriesRequest,
    QueryDownloadRequest,
    RangeTextResponse,
    WorkbookTextResponse,
)
from sheet2sql.models.knowledge_models import ParsedKnowledge, SQLQuery, TestScenario
from sheet2sql.models.sheet_models import ExtractionResult, Workbook
from sheet2sql.services import query_templates
from sheet2sql.services.completion_client import CompletionClient
from sheet2sql.services.knowledge_service import KnowledgeService

logger = logging.getLogger(__name__)

_EXPECTED_TYPES = {None: None, "object": dict, "array": list}

# Largest range read_range_text serializes; every cell in it is visited.
MAX_RANGE_CELLS = 1_000_000


class AssistantService:
    """
    Transport-agnostic facade over the assistant's operations.

    Attributes:
        settings: Runtime settings.
        read_adapter: Workbook reader.
        knowledge_service: Model-backed extraction and generation.
    """

    def __init__(
        self,
        settings: AssistantSettings | None = None,
        read_adapter: CalamineAdapter | None = None,
        completion_client: CompletionClient | None = None,
    ) -> None:
        """
        Initialize the AssistantService.

        Args:
            settings: Runtime settings. If None, reads them from the
                environment.
            read_adapter: Optional CalamineAdapter instance.
            completion_client: Optional completion client; tests inject a
                fake here.
        """
        self.settings = settings or AssistantSettings()
        self.read_adapter = read_adapter or CalamineAdapter()
        self.knowledge_service = KnowledgeService(
            completion_client or CompletionClient(self.settings),
            sample_rows=self.settings.sample_rows,
        )

    def get_sheet_names(self, file_path: str) -> list[str]:
        """
        Get the list of sheet names in a workbook.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
        """
        return self.read_adapter.get_sheet_names(file_path)

    def load_workbook(self, file_path: str, file_name: str | None = None) -> Workbook:
        """
        Read a workbook, wrapping unexpected failures in ReadError.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
            ReadError: If reading fails for any other reason.
        """
        try:
            return self.read_adapter.load_workbook(file_path, file_name=file_name)
        except AssistantError:
            raise
        except Exception as e:
            raise ReadError(file_path=file_path, operation="read", reason=str(e)) from e

    def workbook_to_text(self, file_path: str, file_name: str | None = None) -> WorkbookTextResponse:
        """
        Serialize every sheet of a workbook into prompt text.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
        """
        start_time = time.time()
        workbook = self.load_workbook(file_path, file_name=file_name)
        text = serialize_workbook(workbook)

        logger.debug(
            "Serialized %s to %d chars in %.2f ms",
            workbook.file_name,
            len(text),
            (time.time() - start_time) * 1000,
        )

        return WorkbookTextResponse(
            file_name=workbook.file_name,
            sheet_names=workbook.sheet_names,
            sheet_count=len(workbook.sheets),
            text=text,
        )

    def read_range_text(
        self,
        file_path: str,
        cell_range: str,
        sheet_name: str | None = None,
        sheet_index: int | None = None,
        file_name: str | None = None,
    ) -> RangeTextResponse:
        """
        Serialize one cell range of a sheet.

        Args:
            file_path: Path to the spreadsheet.
            cell_range: Range in A1 notation (e.g. "A1:C10").
            sheet_name: Name of the sheet. If None, uses sheet_index or the
                first sheet.
            sheet_index: Index of the sheet (0-based).
            file_name: Name to report for the file.

        Raises:
            InvalidFormatError: If the range is malformed.
            InvalidRangeError: If the range start lies after its end, or the
                range covers more than MAX_RANGE_CELLS cells.
            SheetNotFoundError: If the specified sheet does not exist.
        """
        parsed_range = parse_cell_range(cell_range)
        cell_count = parsed_range.column_span * parsed_range.row_span
        if cell_count > MAX_RANGE_CELLS:
            raise InvalidRangeError(
                cell_range=parsed_range.a1,
                reason=f"Range covers {cell_count} cells; the limit is {MAX_RANGE_CELLS}",
            )

        try:
            sheet = self.read_adapter.load_sheet(
                file_path,
                sheet_name=sheet_name,
                sheet_index=sheet_index,
            )
        except AssistantError:
            raise
        except Exception as e:
            raise ReadError(file_path=file_path, operation="read range", reason=str(e)) from e

        return RangeTextResponse(
            file_name=file_name or file_path,
            sheet_name=sheet.name,
            cell_range=parsed_range.a1,
            text=serialize(sheet, parsed_range),
        )

    def extract_payload(self, raw_text: str, expect: str | None = None) -> ExtractionResult:
        """
        Recover JSON from model output.

        Args:
            raw_text: Completion text.
            expect: "object", "array" or None for any JSON value.
        """
        return extract(raw_text, expected_type=_EXPECTED_TYPES[expect])

    def suggest_query(self, message: str) -> ChatReply:
        """
        Answer a chat message with a canned SQL suggestion.

        Raises:
            InvalidArgumentError: If the message is blank.
        """
        return query_templates.suggest_query(message)

    def chat_prompts(self) -> ChatPrompts:
        """Greeting and starter prompts for a new chat session."""
        return query_templates.chat_prompts()

    def analyze_workbook(self, file_path: str, file_name: str | None = None) -> ParsedKnowledge:
        """
        Read a workbook and extract its knowledge base, test scenarios included.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
            ConfigurationError: If no API key is configured.
            CompletionError: If a model request fails.
            MalformedPayloadError: If a model response cannot be interpreted.
        """
        workbook = self.load_workbook(file_path, file_name=file_name)
        return self.knowledge_service.analyze_workbook(workbook)

    def generate_queries(self, request: GenerateQueriesRequest) -> list[SQLQuery]:
        """
        Generate SQL queries grounded in a knowledge base.

        Raises:
            ConfigurationError: If no API key is configured.
            CompletionError: If the model request fails.
            MalformedPayloadError: If the response cannot be interpreted.
        """
        return self.knowledge_service.generate_queries(
            knowledge=request.knowledge,
            user_request=request.user_request,
            uploaded_data=request.uploaded_data,
        )

    def generate_test_scenarios(self, knowledge: ParsedKnowledge) -> list[TestScenario]:
        """
        Generate test scenarios for a knowledge base.

        Raises:
            ConfigurationError: If no API key is configured.
            CompletionError: If the model request fails.
            MalformedPayloadError: If the response cannot be interpreted.
        """
        return self.knowledge_service.generate_test_scenarios(knowledge)

    def render_query_file(self, request: QueryDownloadRequest) -> str:
        """Render a query as ``.sql`` file contents."""
        return query_templates.render_query_file(request.query, request.description)

    def describe(self) -> dict[str, Any]:
        """Non-secret runtime details for the health endpoint."""
        return {
            "model": self.settings.model,
            "base_url": self.settings.base_url,
            "api_key_configured": bool(self.settings.api_key),
        }
