"""
Custom exceptions for the assistant.

Provides type-safe, descriptive exceptions for error handling throughout
the application.
"""

from sheet2sql.exceptions.assistant_exceptions import (
    AssistantError,
    CompletionError,
    ConfigurationError,
    InvalidArgumentError,
    InvalidFileFormatError,
    InvalidFormatError,
    InvalidRangeError,
    MalformedPayloadError,
    ReadError,
    SheetNotFoundError,
)
from sheet2sql.exceptions.assistant_exceptions import (
    FileNotFoundError as WorkbookFileNotFoundError,
)

__all__ = [
    "AssistantError",
    "InvalidFormatError",
    "InvalidArgumentError",
    "InvalidRangeError",
    "MalformedPayloadError",
    "WorkbookFileNotFoundError",
    "InvalidFileFormatError",
    "SheetNotFoundError",
    "ReadError",
    "CompletionError",
    "ConfigurationError",
]
