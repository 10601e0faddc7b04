"""
Knowledge extraction and SQL generation through the text-generation API.

KnowledgeService turns a workbook into a ParsedKnowledge (tables, business
rules, functional requirements, test scenarios) and generates SQL queries
and test scenarios from it. Every completion goes through ``extract`` to
recover its JSON payload, and then through the knowledge models for
validation; anything unrecoverable surfaces as MalformedPayloadError.

Example:
    service = KnowledgeService(CompletionClient(AssistantSettings.from_env()))
    knowledge = service.analyze_workbook(workbook)
    queries = service.generate_queries(knowledge, "Find customers without orders")
"""

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ValidationError

from sheet2sql.core.extractor import extract
from sheet2sql.core.serializer import serialize_workbook
from sheet2sql.exceptions.assistant_exceptions import MalformedPayloadError
from sheet2sql.models.knowledge_models import ParsedKnowledge, SQLQuery, TestScenario
from sheet2sql.models.sheet_models import Workbook
from sheet2sql.services import prompts
from sheet2sql.services.completion_client import ChatMessage, CompletionClient

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_ROWS = 5

# A knowledge reply must carry at least one of these sections.
KNOWLEDGE_SECTIONS = (
    "tableSpecifications",
    "functionalRequirements",
    "businessRules",
    "testScenarios",
)


def build_context(
    knowledge: ParsedKnowledge,
    uploaded_data: list[Any] | None = None,
    sample_rows: int = DEFAULT_SAMPLE_ROWS,
) -> str:
    """
    Render the knowledge base as the context block of a query prompt.

    Lists every table with its columns, then business rules, then functional
    requirements, then the first ``sample_rows`` uploaded rows as JSON.
    """
    context = "Knowledge Base:\n"

    context += "\nTable Specifications:\n"
    for table in knowledge.table_specifications:
        context += f"- Table: {table.table_name}\n"
        for column in table.columns:
            markers = (" (PK)" if column.is_primary_key else "") + (" (nullable)" if column.is_nullable else "")
            context += f"  - {column.name}: {column.data_type}{markers}\n"

    context += "\nBusiness Rules:\n"
    for rule in knowledge.business_rules:
        context += f"- {rule.rule}: {rule.sql_condition}\n"

    context += "\nFunctional Requirements:\n"
    for requirement in knowledge.functional_requirements:
        context += f"- {requirement.description}: {requirement.business_logic}\n"

    if uploaded_data is not None:
        context += "\nUploaded Data Sample:\n"
        context += json.dumps(uploaded_data[:sample_rows], indent=2, default=str)

    return context


class KnowledgeService:
    """
    Model-backed knowledge extraction and SQL generation.

    Attributes:
        client: Completion client used for every request.
        sample_rows: Uploaded data rows included in query prompts.
    """

    def __init__(self, client: CompletionClient, sample_rows: int = DEFAULT_SAMPLE_ROWS) -> None:
        self.client = client
        self.sample_rows = sample_rows

    def _request_json(
        self,
        operation: str,
        messages: list[ChatMessage],
        sampling: tuple[float, int],
        expected_type: type,
    ) -> tuple[Any, str]:
        """
        Run one completion and recover its JSON payload.

        Returns:
            Tuple of (parsed payload, raw completion text).

        Raises:
            MalformedPayloadError: If no payload of the expected shape is found.
        """
        temperature, max_tokens = sampling
        raw_text = self.client.complete(messages, temperature=temperature, max_tokens=max_tokens)

        result = extract(raw_text, expected_type=expected_type)
        if not result.success:
            logger.warning("%s: %s (%d chars)", operation, result.message, len(raw_text))
        return result.unwrap(), raw_text

    def _validate(self, operation: str, model: type[BaseModel], payload: Any, raw_text: str) -> Any:
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            logger.warning("%s: payload does not match %s: %s", operation, model.__name__, e)
            raise MalformedPayloadError(raw_text=raw_text, reason=str(e)) from e

    def parse_workbook(self, workbook: Workbook) -> ParsedKnowledge:
        """
        Extract a knowledge base from a workbook.

        Raises:
            ConfigurationError: If no API key is configured.
            CompletionError: If the model request fails.
            MalformedPayloadError: If the response is not a knowledge object.
        """
        messages = [
            {"role": "system", "content": prompts.PARSE_WORKBOOK_SYSTEM},
            {"role": "user", "content": f"Analyze this Excel workbook:\n\n{serialize_workbook(workbook)}"},
        ]
        payload, raw_text = self._request_json(
            "parse workbook",
            messages,
            prompts.PARSE_WORKBOOK_SAMPLING,
            expected_type=dict,
        )
        if not any(section in payload for section in KNOWLEDGE_SECTIONS):
            logger.warning("parse workbook: reply has none of the knowledge sections: %s", sorted(payload))
            raise MalformedPayloadError(
                raw_text=raw_text,
                reason=f"Expected at least one of: {', '.join(KNOWLEDGE_SECTIONS)}",
            )
        knowledge = self._validate("parse workbook", ParsedKnowledge, payload, raw_text)

        logger.info(
            "Parsed %s: %d table(s), %d requirement(s), %d rule(s)",
            workbook.file_name,
            len(knowledge.table_specifications),
            len(knowledge.functional_requirements),
            len(knowledge.business_rules),
        )
        return knowledge

    def generate_queries(
        self,
        knowledge: ParsedKnowledge,
        user_request: str,
        uploaded_data: list[Any] | None = None,
    ) -> list[SQLQuery]:
        """
        Generate SQL queries for a request, grounded in the knowledge base.

        Queries without an id get ``query_<epoch-ms>_<index>``; every query
        is stamped with the generation time.

        Raises:
            ConfigurationError: If no API key is configured.
            CompletionError: If the model request fails.
            MalformedPayloadError: If the response is not a list of queries.
        """
        context = build_context(knowledge, uploaded_data, self.sample_rows)
        messages = [
            {"role": "system", "content": prompts.GENERATE_QUERIES_SYSTEM},
            {"role": "user", "content": f"Knowledge Base:\n{context}\n\nUser Request: {user_request}"},
        ]
        payload, raw_text = self._request_json(
            "generate queries",
            messages,
            prompts.GENERATE_QUERIES_SAMPLING,
            expected_type=list,
        )

        generated_at = datetime.now(timezone.utc)
        batch_ms = int(time.time() * 1000)

        queries: list[SQLQuery] = []
        for index, item in enumerate(payload):
            query = self._validate("generate queries", SQLQuery, item, raw_text)
            queries.append(
                query.model_copy(
                    update={
                        "id": query.id or f"query_{batch_ms}_{index}",
                        "timestamp": generated_at,
                    }
                )
            )

        logger.info("Generated %d quer%s", len(queries), "y" if len(queries) == 1 else "ies")
        return queries

    def generate_test_scenarios(self, knowledge: ParsedKnowledge) -> list[TestScenario]:
        """
        Generate test scenarios covering the knowledge base.

        Raises:
            ConfigurationError: If no API key is configured.
            CompletionError: If the model request fails.
            MalformedPayloadError: If the response is not a list of scenarios.
        """
        knowledge_json = knowledge.model_dump_json(by_alias=True, indent=2)
        messages = [
            {"role": "system", "content": prompts.GENERATE_SCENARIOS_SYSTEM},
            {"role": "user", "content": f"Generate test scenarios for this knowledge base:\n{knowledge_json}"},
        ]
        payload, raw_text = self._request_json(
            "generate test scenarios",
            messages,
            prompts.GENERATE_SCENARIOS_SAMPLING,
            expected_type=list,
        )
        return [self._validate("generate test scenarios", TestScenario, item, raw_text) for item in payload]

    def analyze_workbook(self, workbook: Workbook) -> ParsedKnowledge:
        """Parse a workbook, then replace its test scenarios with generated ones."""
        knowledge = self.parse_workbook(workbook)
        scenarios = self.generate_test_scenarios(knowledge)
        return knowledge.model_copy(update={"test_scenarios": scenarios})
