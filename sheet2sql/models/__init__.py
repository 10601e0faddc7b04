"""
Data models for the assistant.

Contains Pydantic models for cells and sheets, the extracted knowledge base,
and request/response validation and serialization.
"""

from sheet2sql.models.api_models import (
    ChatPrompts,
    ChatReply,
    ChatRequest,
    ErrorResponse,
    ExtractRequest,
    GenerateQueriesRequest,
    QueryDownloadRequest,
    RangeTextResponse,
    WorkbookTextResponse,
)
from sheet2sql.models.knowledge_models import (
    BusinessRule,
    ColumnDefinition,
    Constraint,
    DataTransformation,
    FunctionalRequirement,
    ParsedKnowledge,
    QueryCategory,
    Relationship,
    SQLQuery,
    TableSpecification,
    TestScenario,
)
from sheet2sql.models.sheet_models import (
    CellAddress,
    CellRange,
    CellScalar,
    ExtractionResult,
    Sheet,
    Workbook,
)

__all__ = [
    "CellAddress",
    "CellRange",
    "CellScalar",
    "Sheet",
    "Workbook",
    "ExtractionResult",
    "ColumnDefinition",
    "Constraint",
    "Relationship",
    "TableSpecification",
    "DataTransformation",
    "FunctionalRequirement",
    "BusinessRule",
    "QueryCategory",
    "SQLQuery",
    "TestScenario",
    "ParsedKnowledge",
    "WorkbookTextResponse",
    "RangeTextResponse",
    "ExtractRequest",
    "ChatRequest",
    "ChatReply",
    "ChatPrompts",
    "GenerateQueriesRequest",
    "QueryDownloadRequest",
    "ErrorResponse",
]
