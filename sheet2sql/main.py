"""
FastAPI application for the spreadsheet-to-SQL assistant.

API Endpoints:
    - GET /health: Health check
    - POST /workbook/sheets: Upload a workbook and list its sheets
    - POST /workbook/text: Upload a workbook and serialize it to prompt text
    - POST /workbook/range: Upload a workbook and serialize one cell range
    - POST /extract: Recover JSON from raw model output
    - POST /chat: Canned SQL suggestion for a chat message
    - GET /chat/prompts: Greeting and starter prompts for the chat
    - POST /knowledge/parse: Upload a workbook and extract its knowledge base
    - POST /queries/generate: Generate SQL from a knowledge base
    - POST /scenarios/generate: Generate test scenarios from a knowledge base
    - POST /queries/download: Render a query as a .sql file

Example:
    To run the server:
        uvicorn sheet2sql.main:app --reload

    Or programmatically:
        from sheet2sql.main import run_server
        run_server()
"""

import logging
import os
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Annotated, Any

import uvicorn
from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from sheet2sql import __version__
from sheet2sql.config import AssistantSettings, configure_logging
from sheet2sql.exceptions.assistant_exceptions import AssistantError
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
from sheet2sql.models.knowledge_models import ParsedKnowledge, SQLQuery, TestScenario
from sheet2sql.models.sheet_models import ExtractionResult
from sheet2sql.services.assistant_service import AssistantService

logger = logging.getLogger(__name__)

assistant_service: AssistantService | None = None

VALID_EXTENSIONS = (".xlsx", ".xls", ".xlsb", ".xlsm", ".ods")

STATUS_CODE_MAP = {
    "INVALID_FORMAT": 400,
    "INVALID_ARGUMENT": 400,
    "INVALID_RANGE": 400,
    "INVALID_FILE_FORMAT": 400,
    "FILE_NOT_FOUND": 404,
    "SHEET_NOT_FOUND": 404,
    "READ_ERROR": 500,
    "MALFORMED_PAYLOAD": 502,
    "COMPLETION_ERROR": 502,
    "CONFIGURATION_ERROR": 503,
}

ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    404: {"model": ErrorResponse, "description": "Sheet not found"},
}

MODEL_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    **ERROR_RESPONSES,
    502: {"model": ErrorResponse, "description": "Model request failed or returned unusable output"},
    503: {"model": ErrorResponse, "description": "Model endpoint not configured"},
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Initializes the assistant service on startup and cleans up on shutdown.
    """
    global assistant_service
    assistant_service = AssistantService(AssistantSettings.from_env())
    yield
    assistant_service = None


app = FastAPI(
    title="Spreadsheet to SQL Assistant",
    description="""
    Turns uploaded workbooks into SQL with the help of a hosted text-generation model.

    ## Features

    - **Workbook text**: Serialize sheets and cell ranges to tab/newline text
    - **Knowledge extraction**: Tables, business rules and test scenarios from a workbook
    - **Query generation**: SQL grounded in the extracted knowledge base
    - **Chat**: Canned SQL suggestions matched by keyword
    - **JSON recovery**: Extract JSON from fenced or prose-wrapped model output
    """,
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_service() -> AssistantService:
    """
    Get the assistant service instance.

    Raises:
        HTTPException: If the service is not initialized.
    """
    if assistant_service is None:
        raise HTTPException(
            status_code=503,
            detail="Assistant service is not initialized",
        )
    return assistant_service


@app.exception_handler(AssistantError)
async def handle_assistant_error(request: Request, error: AssistantError) -> JSONResponse:
    """Convert AssistantError to an ErrorResponse with the mapped status code."""
    status_code = STATUS_CODE_MAP.get(error.error_code, 500)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, error.message)

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            success=False,
            error_code=error.error_code,
            message=error.message,
            details=error.details,
        ).model_dump(),
    )


@asynccontextmanager
async def spooled_upload(file: UploadFile) -> AsyncIterator[str]:
    """
    Save an uploaded workbook to a temporary file for the reader.

    Yields:
        Path to the temporary file, removed on exit.

    Raises:
        HTTPException: If no file or an unsupported extension is given.
    """
    if not file.filename:
        raise HTTPException(
            status_code=400,
            detail={"error_code": "INVALID_FILE", "message": "No file provided"},
        )

    if not file.filename.lower().endswith(VALID_EXTENSIONS):
        raise HTTPException(
            status_code=400,
            detail={
                "error_code": "INVALID_FILE_FORMAT",
                "message": f"Invalid file extension. Supported: {', '.join(VALID_EXTENSIONS)}",
            },
        )

    temp_path = None
    try:
        suffix = os.path.splitext(file.filename)[1]
        with tempfile.NamedTemporaryFile(delete=False, suffix=suffix) as temp_file:
            temp_file.write(await file.read())
            temp_path = temp_file.name
        yield temp_path
    finally:
        if temp_path and os.path.exists(temp_path):
            try:
                os.unlink(temp_path)
            except OSError as e:
                logger.warning("Could not remove temporary upload %s: %s", temp_path, e)


@app.get(
    "/health",
    tags=["System"],
    summary="Health check",
    response_model=dict,
)
async def health_check() -> dict[str, Any]:
    """
    Check the health status of the service.

    Returns:
        Dictionary containing status, model details and timestamp.
    """
    health: dict[str, Any] = {
        "status": "healthy",
        "service": "Spreadsheet to SQL Assistant",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if assistant_service is not None:
        health.update(assistant_service.describe())
    return health


@app.post(
    "/workbook/sheets",
    tags=["Workbook"],
    summary="List sheet names",
    response_model=list[str],
    responses=ERROR_RESPONSES,
)
async def list_sheets(
    file: Annotated[UploadFile, File(description="Workbook to upload")],
) -> list[str]:
    """Upload a workbook and return its sheet names in order."""
    service = get_service()
    async with spooled_upload(file) as temp_path:
        return service.get_sheet_names(temp_path)


@app.post(
    "/workbook/text",
    tags=["Workbook"],
    summary="Serialize workbook to text",
    response_model=WorkbookTextResponse,
    responses=ERROR_RESPONSES,
)
async def workbook_text(
    file: Annotated[UploadFile, File(description="Workbook to upload")],
) -> WorkbookTextResponse:
    """
    Upload a workbook and serialize every sheet's used range.

    Present cells are tab-terminated, rows newline-terminated, and each
    sheet is introduced by a ``Sheet: <name>`` line.
    """
    service = get_service()
    async with spooled_upload(file) as temp_path:
        return service.workbook_to_text(temp_path, file_name=file.filename)


@app.post(
    "/workbook/range",
    tags=["Workbook"],
    summary="Serialize a cell range to text",
    response_model=RangeTextResponse,
    responses=ERROR_RESPONSES,
)
async def workbook_range(
    file: Annotated[UploadFile, File(description="Workbook to upload")],
    cell_range: Annotated[str, Query(description="Cell range in A1 notation (e.g., 'A1:C10')")],
    sheet_name: Annotated[str | None, Query(description="Sheet name")] = None,
    sheet_index: Annotated[int | None, Query(description="Sheet index (0-based)")] = None,
) -> RangeTextResponse:
    """Upload a workbook and serialize one cell range of one sheet."""
    service = get_service()
    async with spooled_upload(file) as temp_path:
        return await run_in_threadpool(
            service.read_range_text,
            temp_path,
            cell_range=cell_range,
            sheet_name=sheet_name,
            sheet_index=sheet_index,
            file_name=file.filename,
        )


@app.post(
    "/extract",
    tags=["Model Output"],
    summary="Recover JSON from model output",
    response_model=ExtractionResult,
)
async def extract_json(request: ExtractRequest) -> ExtractionResult:
    """
    Recover the JSON payload from raw model output.

    Always answers 200; check ``success`` in the body.
    """
    return get_service().extract_payload(request.raw_text, expect=request.expect)


@app.post(
    "/chat",
    tags=["Chat"],
    summary="Suggest a canned SQL query",
    response_model=ChatReply,
    responses=ERROR_RESPONSES,
)
async def chat(request: ChatRequest) -> ChatReply:
    """Match the message against the canned query table."""
    return get_service().suggest_query(request.message)


@app.get(
    "/chat/prompts",
    tags=["Chat"],
    summary="Get the chat greeting and starter prompts",
    response_model=ChatPrompts,
)
async def chat_prompts() -> ChatPrompts:
    """Return the greeting and the starter prompts offered to a new chat."""
    return get_service().chat_prompts()


@app.post(
    "/knowledge/parse",
    tags=["Knowledge"],
    summary="Extract a knowledge base from a workbook",
    response_model=ParsedKnowledge,
    responses=MODEL_ERROR_RESPONSES,
)
async def parse_knowledge(
    file: Annotated[UploadFile, File(description="Workbook to upload")],
) -> ParsedKnowledge:
    """
    Upload a workbook and extract tables, requirements, business rules and
    test scenarios with the text-generation model.
    """
    service = get_service()
    async with spooled_upload(file) as temp_path:
        return await run_in_threadpool(service.analyze_workbook, temp_path, file.filename)


@app.post(
    "/queries/generate",
    tags=["Knowledge"],
    summary="Generate SQL queries",
    response_model=list[SQLQuery],
    responses=MODEL_ERROR_RESPONSES,
)
async def generate_queries(request: GenerateQueriesRequest) -> list[SQLQuery]:
    """Generate SQL for the user's request, grounded in the knowledge base."""
    service = get_service()
    return await run_in_threadpool(service.generate_queries, request)


@app.post(
    "/scenarios/generate",
    tags=["Knowledge"],
    summary="Generate test scenarios",
    response_model=list[TestScenario],
    responses=MODEL_ERROR_RESPONSES,
)
async def generate_test_scenarios(knowledge: ParsedKnowledge) -> list[TestScenario]:
    """Generate test scenarios covering the knowledge base."""
    service = get_service()
    return await run_in_threadpool(service.generate_test_scenarios, knowledge)


@app.post(
    "/queries/download",
    tags=["Knowledge"],
    summary="Download a query as a .sql file",
    response_class=Response,
)
async def download_query(request: QueryDownloadRequest) -> Response:
    """Render the query with a description/timestamp header as ``query.sql``."""
    content = get_service().render_query_file(request)
    return Response(
        content=content,
        media_type="text/sql",
        headers={"Content-Disposition": 'attachment; filename="query.sql"'},
    )


def run_server(
    host: str = "0.0.0.0",
    port: int = 8000,
    reload: bool = False,
) -> None:
    """
    Run the FastAPI server.

    Args:
        host: Host to bind to. Defaults to "0.0.0.0".
        port: Port to listen on. Defaults to 8000.
        reload: Whether to enable auto-reload. Defaults to False.
    """
    configure_logging(AssistantSettings.from_env().log_level)
    uvicorn.run(
        "sheet2sql.main:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    run_server()
