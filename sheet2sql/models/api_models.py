"""
Request/response models for the REST and MCP interfaces.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from sheet2sql.models.knowledge_models import ParsedKnowledge


class WorkbookTextResponse(BaseModel):
    """
    A workbook serialized to prompt text.

    Attributes:
        file_name: Name of the uploaded file.
        sheet_names: Sheet names in workbook order.
        sheet_count: Number of sheets.
        text: Tab/newline serialization of every sheet.
    """

    file_name: str = Field(description="Name of the uploaded file")
    sheet_names: list[str] = Field(default_factory=list, description="Sheet names in workbook order")
    sheet_count: int = Field(ge=0, description="Number of sheets")
    text: str = Field(description="Tab/newline serialization of every sheet")


class RangeTextResponse(BaseModel):
    """
    A single cell range serialized to text.

    Attributes:
        file_name: Name of the uploaded file.
        sheet_name: Sheet the range was read from.
        cell_range: The range in canonical A1 notation.
        text: Tab/newline serialization of the range.
    """

    file_name: str = Field(description="Name of the uploaded file")
    sheet_name: str = Field(description="Sheet the range was read from")
    cell_range: str = Field(description="Range in canonical A1 notation")
    text: str = Field(description="Tab/newline serialization of the range")


class ExtractRequest(BaseModel):
    """Raw completion text to recover JSON from."""

    raw_text: str = Field(description="Completion text as returned by the model")
    expect: Literal["object", "array"] | None = Field(
        default=None,
        description="Required JSON shape; any shape is accepted when omitted",
    )


class ChatRequest(BaseModel):
    """A chat message for the canned query matcher."""

    message: str = Field(min_length=1, description="The user's message")

    @field_validator("message")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only messages."""
        if not v.strip():
            raise ValueError("message must not be blank")
        return v


class ChatReply(BaseModel):
    """
    The assistant's answer to a chat message.

    Attributes:
        content: Reply text shown to the user.
        sql_query: The suggested SQL.
        description: What the suggested SQL does.
        timestamp: When the reply was produced.
    """

    content: str = Field(description="Reply text shown to the user")
    sql_query: str = Field(description="The suggested SQL")
    description: str = Field(description="What the suggested SQL does")
    timestamp: datetime = Field(description="When the reply was produced")


class ChatPrompts(BaseModel):
    """
    Opening text for a chat session.

    Attributes:
        greeting: First assistant message of the session.
        suggested_prompts: Starter prompts offered to the user.
    """

    greeting: str = Field(description="First assistant message of the session")
    suggested_prompts: list[str] = Field(description="Starter prompts offered to the user")


class GenerateQueriesRequest(BaseModel):
    """
    Request to generate SQL from a knowledge base.

    Attributes:
        knowledge: The knowledge base to ground the queries in.
        user_request: What the user wants the queries to do.
        uploaded_data: Optional sample data rows for extra context.
    """

    knowledge: ParsedKnowledge = Field(description="Knowledge base to ground the queries in")
    user_request: str = Field(min_length=1, description="What the queries should do")
    uploaded_data: list[Any] | None = Field(
        default=None,
        description="Optional sample data rows; only the first few are sent",
    )


class QueryDownloadRequest(BaseModel):
    """A query to render as a downloadable .sql file."""

    query: str = Field(min_length=1, description="SQL text")
    description: str = Field(default="Generated SQL query", description="Header comment")


class ErrorResponse(BaseModel):
    """
    Standard error response model for the API.

    Attributes:
        success: Always False for error responses.
        error_code: Machine-readable error code.
        message: Human-readable error description.
        details: Additional error context.
    """

    success: bool = Field(default=False, description="Always False for error responses")
    error_code: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: dict | None = Field(default=None, description="Additional error context")
