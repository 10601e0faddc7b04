"""
Custom exceptions for the spreadsheet-to-SQL assistant.

This module defines a hierarchy of exceptions for the error conditions
raised while reading workbooks, addressing cells, talking to the
text-generation API and interpreting its responses. All exceptions inherit
from AssistantError for consistent error handling.

Example:
    try:
        text = serialize(sheet, cell_range)
    except InvalidRangeError as e:
        logger.error("Range error: %s", e.cell_range)
    except AssistantError as e:
        logger.error("General error: %s", e)
"""


class AssistantError(Exception):
    """
    Base exception for all assistant errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code for API responses.
        details: Optional additional context about the error.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "ASSISTANT_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """
        Convert exception to a dictionary for API responses.

        Returns:
            Dictionary containing error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidFormatError(AssistantError):
    """
    Raised when a column label or cell reference is not well formed.

    Attributes:
        value: The offending input.
        reason: Specific reason why the input was rejected.
    """

    def __init__(self, value: str, reason: str | None = None) -> None:
        self.value = value
        self.reason = reason

        message = f"Invalid cell reference format: {value!r}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_FORMAT",
            details={"value": value, "reason": reason},
        )


class InvalidArgumentError(AssistantError):
    """
    Raised when an argument is outside its accepted domain.

    Covers non-positive column indexes and blank chat messages.

    Attributes:
        argument: Name of the argument.
        value: The rejected value.
    """

    def __init__(self, argument: str, value: object, reason: str | None = None) -> None:
        self.argument = argument
        self.value = value
        self.reason = reason

        message = f"Invalid value for {argument}: {value!r}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_ARGUMENT",
            details={"argument": argument, "value": repr(value), "reason": reason},
        )


class InvalidRangeError(AssistantError):
    """
    Raised when a cell range's start is not at or before its end, or the
    range covers more cells than may be read at once.

    Attributes:
        cell_range: The range in A1 notation.
        reason: Specific reason why the range is invalid.
    """

    def __init__(self, cell_range: str, reason: str | None = None) -> None:
        self.cell_range = cell_range
        self.reason = reason

        message = f"Invalid cell range: {cell_range}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_RANGE",
            details={"cell_range": cell_range, "reason": reason},
        )


class MalformedPayloadError(AssistantError):
    """
    Raised when a model response cannot be recovered as the expected JSON.

    Attributes:
        raw_text: The completion text exactly as the model returned it.
        reason: What went wrong (decode failure, wrong shape, validation).
    """

    # Bounds the size of the error body; the attribute keeps the full text.
    PREVIEW_CHARS = 500

    def __init__(self, raw_text: str, reason: str | None = None) -> None:
        self.raw_text = raw_text
        self.reason = reason

        message = "Model response is not valid JSON"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="MALFORMED_PAYLOAD",
            details={
                "reason": reason,
                "raw_text_preview": raw_text[: self.PREVIEW_CHARS],
            },
        )


class FileNotFoundError(AssistantError):
    """
    Raised when the specified workbook file does not exist.

    Attributes:
        file_path: Path to the file that was not found.
    """

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        super().__init__(
            message=f"Workbook not found: {file_path}",
            error_code="FILE_NOT_FOUND",
            details={"file_path": file_path},
        )


class InvalidFileFormatError(AssistantError):
    """
    Raised when the file is not a readable spreadsheet.

    Attributes:
        file_path: Path to the invalid file.
        expected_formats: List of supported extensions.
    """

    def __init__(
        self,
        file_path: str,
        expected_formats: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.file_path = file_path
        self.expected_formats = expected_formats or [".xlsx", ".xls", ".xlsb", ".xlsm", ".ods"]
        self.reason = reason

        message = f"Invalid spreadsheet format: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_FILE_FORMAT",
            details={
                "file_path": file_path,
                "expected_formats": self.expected_formats,
                "reason": reason,
            },
        )


class SheetNotFoundError(AssistantError):
    """
    Raised when the specified sheet does not exist in the workbook.

    Attributes:
        sheet_name: Name of the sheet that was not found.
        available_sheets: List of sheets available in the workbook.
    """

    def __init__(
        self,
        sheet_name: str,
        available_sheets: list[str] | None = None,
    ) -> None:
        self.sheet_name = sheet_name
        self.available_sheets = available_sheets or []

        message = f"Sheet not found: {sheet_name}"
        if available_sheets:
            message += f". Available sheets: {', '.join(available_sheets)}"

        super().__init__(
            message=message,
            error_code="SHEET_NOT_FOUND",
            details={
                "sheet_name": sheet_name,
                "available_sheets": self.available_sheets,
            },
        )


class ReadError(AssistantError):
    """
    Raised when reading a workbook fails for reasons not covered above.

    Attributes:
        file_path: Path to the file being read.
        operation: The specific read operation that failed.
    """

    def __init__(
        self,
        file_path: str,
        operation: str = "read",
        reason: str | None = None,
    ) -> None:
        self.file_path = file_path
        self.operation = operation
        self.reason = reason

        message = f"Failed to {operation} workbook: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="READ_ERROR",
            details={
                "file_path": file_path,
                "operation": operation,
                "reason": reason,
            },
        )


class CompletionError(AssistantError):
    """
    Raised when the text-generation API call fails.

    Attributes:
        model: The model identifier the request was sent to.
        reason: Transport, authentication or empty-response description.
    """

    def __init__(self, model: str, reason: str | None = None) -> None:
        self.model = model
        self.reason = reason

        message = f"Completion request to {model} failed"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="COMPLETION_ERROR",
            details={"model": model, "reason": reason},
        )


class ConfigurationError(AssistantError):
    """
    Raised when a required setting is missing.

    Attributes:
        setting: Name of the environment variable that must be set.
    """

    def __init__(self, setting: str) -> None:
        self.setting = setting
        super().__init__(
            message=f"Missing required setting: {setting}",
            error_code="CONFIGURATION_ERROR",
            details={"setting": setting},
        )
