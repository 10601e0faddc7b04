"""
sheet2sql: spreadsheet-to-SQL assistant service.

Reads uploaded workbooks, serializes their cells into prompt text, asks a
hosted text-generation model to extract a knowledge base (tables, business
rules, test scenarios) and to generate SQL from it. Exposed through both
OpenAPI (REST via FastAPI) and MCP (Model Context Protocol) interfaces.

Architecture:
    - Service Layer pattern keeps transports (HTTP/MCP) thin
    - python-calamine for workbook reading
    - openai SDK against an OpenAI-compatible endpoint (Groq by default)
"""

__version__ = "0.1.0"
