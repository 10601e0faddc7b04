"""
Service layer for the assistant.

Contains the business logic for workbook serialization, knowledge
extraction and SQL generation, decoupled from transport layers (HTTP/MCP).
"""

from sheet2sql.services.assistant_service import AssistantService
from sheet2sql.services.completion_client import CompletionClient
from sheet2sql.services.knowledge_service import KnowledgeService

__all__ = [
    "AssistantService",
    "CompletionClient",
    "KnowledgeService",
]
