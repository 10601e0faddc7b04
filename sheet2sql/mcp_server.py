"""
MCP (Model Context Protocol) server for the assistant.

Exposes the assistant's operations as tools that AI agents can call. It
provides the same functionality as the REST API over the MCP stdio
transport; workbooks are addressed by local file path.

MCP Tools:
    - list_sheets: Get sheet names in a workbook
    - read_workbook_text: Serialize every sheet to prompt text
    - read_range_text: Serialize one cell range
    - extract_json: Recover JSON from raw model output
    - suggest_query: Canned SQL suggestion for a message
    - list_suggested_prompts: Chat greeting and starter prompts
    - parse_knowledge: Extract a knowledge base from a workbook
    - generate_queries: Generate SQL from a knowledge base
    - generate_test_scenarios: Generate test scenarios from a knowledge base

Example:
    To run the MCP server:
        python -m sheet2sql.mcp_server

    Or programmatically:
        from sheet2sql.mcp_server import run_mcp_server
        run_mcp_server()
"""

import asyncio
import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import (
    TextContent,
    Tool,
)
from pydantic import ValidationError

from sheet2sql.config import AssistantSettings, configure_logging
from sheet2sql.exceptions.assistant_exceptions import AssistantError
from sheet2sql.models.api_models import GenerateQueriesRequest
from sheet2sql.models.knowledge_models import ParsedKnowledge
from sheet2sql.services.assistant_service import AssistantService

logger = logging.getLogger(__name__)

_FILE_PATH_PROPERTY = {
    "type": "string",
    "description": "Path to the workbook (.xlsx, .xls, .xlsb, .xlsm, .ods)",
}
_KNOWLEDGE_PROPERTY = {
    "type": "object",
    "description": (
        "Knowledge base as returned by parse_knowledge "
        "(tableSpecifications, functionalRequirements, businessRules, testScenarios)"
    ),
}


class MCPAssistantServer:
    """
    MCP server implementation for the assistant.

    Wraps the AssistantService and exposes it through the MCP protocol.

    Attributes:
        service: The underlying AssistantService instance.
        server: The MCP Server instance.

    Example:
        mcp_server = MCPAssistantServer()
        await mcp_server.run()
    """

    def __init__(self, service: AssistantService | None = None) -> None:
        """
        Initialize the MCP assistant server.

        Args:
            service: Optional AssistantService instance. If None, creates one
                from environment settings.
        """
        self.service = service or AssistantService(AssistantSettings.from_env())
        self.server = Server("sheet2sql-mcp-server")
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        """Set up MCP request handlers."""

        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return self._get_tools()

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            result = await self._execute_tool(name, arguments)
            return [TextContent(type="text", text=json.dumps(result, default=str, indent=2))]

    def _get_tools(self) -> list[Tool]:
        """
        Get the list of available tools.

        Returns:
            List of MCP Tool definitions.
        """
        return [
            Tool(
                name="list_sheets",
                description="Get the list of sheet names in a workbook.",
                inputSchema={
                    "type": "object",
                    "properties": {"file_path": _FILE_PATH_PROPERTY},
                    "required": ["file_path"],
                },
            ),
            Tool(
                name="read_workbook_text",
                description=(
                    "Serialize every sheet of a workbook to tab/newline text: present cells "
                    "end with a tab, rows end with a newline, and each sheet starts with a "
                    "'Sheet: <name>' line."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {"file_path": _FILE_PATH_PROPERTY},
                    "required": ["file_path"],
                },
            ),
            Tool(
                name="read_range_text",
                description=(
                    "Serialize one cell range of a sheet to tab/newline text. "
                    "The range should be in A1 notation (e.g., 'A1:C10')."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "file_path": _FILE_PATH_PROPERTY,
                        "cell_range": {
                            "type": "string",
                            "description": "Cell range in A1 notation (e.g., 'A1:C10')",
                        },
                        "sheet_name": {
                            "type": "string",
                            "description": "Name of the sheet (optional, defaults to first sheet)",
                        },
                        "sheet_index": {
                            "type": "integer",
                            "description": "Index of the sheet (0-based)",
                        },
                    },
                    "required": ["file_path", "cell_range"],
                },
            ),
            Tool(
                name="extract_json",
                description=(
                    "Recover the JSON payload from raw model output that may be wrapped in "
                    "a ```json fence, a plain ``` fence, or surrounding prose."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "raw_text": {
                            "type": "string",
                            "description": "Model output text",
                        },
                        "expect": {
                            "type": "string",
                            "enum": ["object", "array"],
                            "description": "Required JSON shape (optional)",
                        },
                    },
                    "required": ["raw_text"],
                },
            ),
            Tool(
                name="suggest_query",
                description="Suggest a canned SQL query for a chat message by keyword.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "message": {
                            "type": "string",
                            "description": "The user's message",
                        },
                    },
                    "required": ["message"],
                },
            ),
            Tool(
                name="list_suggested_prompts",
                description="Get the chat greeting and the starter prompts that suggest_query answers.",
                inputSchema={
                    "type": "object",
                    "properties": {},
                    "required": [],
                },
            ),
            Tool(
                name="parse_knowledge",
                description=(
                    "Extract table specifications, functional requirements, business rules "
                    "and test scenarios from a workbook using the text-generation model."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {"file_path": _FILE_PATH_PROPERTY},
                    "required": ["file_path"],
                },
            ),
            Tool(
                name="generate_queries",
                description="Generate SQL queries for a request, grounded in a knowledge base.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "knowledge": _KNOWLEDGE_PROPERTY,
                        "user_request": {
                            "type": "string",
                            "description": "What the queries should do",
                        },
                        "uploaded_data": {
                            "type": "array",
                            "description": "Optional sample data rows",
                        },
                    },
                    "required": ["knowledge", "user_request"],
                },
            ),
            Tool(
                name="generate_test_scenarios",
                description="Generate test scenarios covering a knowledge base.",
                inputSchema={
                    "type": "object",
                    "properties": {"knowledge": _KNOWLEDGE_PROPERTY},
                    "required": ["knowledge"],
                },
            ),
        ]

    async def _execute_tool(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """
        Execute a tool by name with the given arguments.

        Returns:
            ``{"success": True, "data": ...}`` or
            ``{"success": False, "error": {...}}``.
        """
        try:
            if name == "list_sheets":
                result = self.service.get_sheet_names(arguments["file_path"])
                return {"success": True, "data": {"sheets": result}}

            elif name == "read_workbook_text":
                result = self.service.workbook_to_text(arguments["file_path"])
                return {"success": True, "data": result.model_dump()}

            elif name == "read_range_text":
                result = await asyncio.to_thread(
                    self.service.read_range_text,
                    file_path=arguments["file_path"],
                    cell_range=arguments["cell_range"],
                    sheet_name=arguments.get("sheet_name"),
                    sheet_index=arguments.get("sheet_index"),
                )
                return {"success": True, "data": result.model_dump()}

            elif name == "extract_json":
                result = self.service.extract_payload(
                    arguments["raw_text"],
                    expect=arguments.get("expect"),
                )
                return {"success": True, "data": result.model_dump()}

            elif name == "suggest_query":
                result = self.service.suggest_query(arguments["message"])
                return {"success": True, "data": result.model_dump(mode="json")}

            elif name == "list_suggested_prompts":
                result = self.service.chat_prompts()
                return {"success": True, "data": result.model_dump()}

            elif name == "parse_knowledge":
                result = await asyncio.to_thread(self.service.analyze_workbook, arguments["file_path"])
                return {"success": True, "data": result.model_dump(mode="json", by_alias=True)}

            elif name == "generate_queries":
                request = GenerateQueriesRequest(
                    knowledge=arguments["knowledge"],
                    user_request=arguments["user_request"],
                    uploaded_data=arguments.get("uploaded_data"),
                )
                result = await asyncio.to_thread(self.service.generate_queries, request)
                return {
                    "success": True,
                    "data": {"queries": [query.model_dump(mode="json", by_alias=True) for query in result]},
                }

            elif name == "generate_test_scenarios":
                knowledge = ParsedKnowledge.model_validate(arguments["knowledge"])
                result = await asyncio.to_thread(self.service.generate_test_scenarios, knowledge)
                return {
                    "success": True,
                    "data": {
                        "scenarios": [scenario.model_dump(mode="json", by_alias=True) for scenario in result]
                    },
                }

            else:
                return {
                    "success": False,
                    "error": {
                        "error_code": "UNKNOWN_TOOL",
                        "message": f"Unknown tool: {name}",
                    },
                }

        except AssistantError as e:
            return {
                "success": False,
                "error": e.to_dict(),
            }
        except (KeyError, ValidationError) as e:
            return {
                "success": False,
                "error": {
                    "error_code": "INVALID_ARGUMENT",
                    "message": f"Invalid arguments for {name}: {e}",
                },
            }
        except Exception as e:
            logger.exception("Tool %s failed", name)
            return {
                "success": False,
                "error": {
                    "error_code": "INTERNAL_ERROR",
                    "message": str(e),
                },
            }

    async def run(self) -> None:
        """
        Run the MCP server using stdio transport.

        Blocks until terminated. Uses stdin/stdout for communication with
        the MCP client.
        """
        async with stdio_server() as (read_stream, write_stream):
            await self.server.run(
                read_stream,
                write_stream,
                self.server.create_initialization_options(),
            )


def run_mcp_server() -> None:
    """
    Run the MCP assistant server.

    Example:
        python -m sheet2sql.mcp_server
    """
    settings = AssistantSettings.from_env()
    configure_logging(settings.log_level)
    server = MCPAssistantServer(AssistantService(settings))
    asyncio.run(server.run())


if __name__ == "__main__":
    run_mcp_server()
