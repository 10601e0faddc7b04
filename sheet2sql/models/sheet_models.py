"""
Pydantic models for spreadsheet cells, sheets and extraction results.

These are the in-memory shapes the core functions operate on. Workbook
reader output is adapted into them at the boundary, where cell keys are
validated and canonicalized, so the core never sees loosely typed
cell objects.
"""

from datetime import date, datetime, time
from typing import Any

from pydantic import BaseModel, Field, field_validator

CellScalar = str | int | float | bool | datetime | date | time


class CellAddress(BaseModel):
    """
    A single cell position.

    Both coordinates are 1-based, as in A1 notation.

    Attributes:
        column: Column number (A=1, Z=26, AA=27, ...).
        row: Row number.
    """

    column: int = Field(
        ge=1,
        description="Column number (1-based, A=1)",
    )
    row: int = Field(
        ge=1,
        description="Row number (1-based)",
    )

    model_config = {"frozen": True}

    @property
    def a1(self) -> str:
        """Canonical A1 text, e.g. ``"AB12"``."""
        from sheet2sql.core.addressing import column_letters

        return f"{column_letters(self.column)}{self.row}"

    def __str__(self) -> str:
        return self.a1


class CellRange(BaseModel):
    """
    An inclusive rectangular region between two cell addresses.

    Ordering is not enforced at construction; operations that consume a
    range reject it with InvalidRangeError when ``is_ordered`` is False.

    Attributes:
        start: Top-left corner.
        end: Bottom-right corner.
    """

    start: CellAddress = Field(
        description="Top-left corner of the range",
    )
    end: CellAddress = Field(
        description="Bottom-right corner of the range (inclusive)",
    )

    model_config = {"frozen": True}

    @property
    def is_ordered(self) -> bool:
        return self.start.column <= self.end.column and self.start.row <= self.end.row

    @property
    def a1(self) -> str:
        return f"{self.start.a1}:{self.end.a1}"

    @property
    def column_span(self) -> int:
        return self.end.column - self.start.column + 1

    @property
    def row_span(self) -> int:
        return self.end.row - self.start.row + 1

    def __str__(self) -> str:
        return self.a1


class Sheet(BaseModel):
    """
    A sparse worksheet.

    Attributes:
        name: Sheet name as shown in the workbook.
        cells: Mapping of canonical A1 address to cell value. Addresses
            missing from the mapping are empty.
        ref: The used range of the sheet, or None for an empty sheet.
    """

    name: str = Field(
        description="Name of the sheet",
    )
    cells: dict[str, CellScalar] = Field(
        default_factory=dict,
        description="Cell values keyed by A1 address; absent keys are empty cells",
    )
    ref: CellRange | None = Field(
        default=None,
        description="Used range of the sheet (None when the sheet is empty)",
    )

    @field_validator("cells", mode="before")
    @classmethod
    def canonicalize_addresses(cls, v: Any) -> Any:
        """Normalize keys to uppercase A1 form and drop empty values."""
        if not isinstance(v, dict):
            return v

        from sheet2sql.core.addressing import parse_cell_address

        return {
            parse_cell_address(str(key)).a1: value
            for key, value in v.items()
            if value is not None
        }


class Workbook(BaseModel):
    """
    A workbook: named sheets in their original order.

    Attributes:
        file_name: Name of the file the workbook was read from.
        sheets: Sheets in workbook order.
    """

    file_name: str = Field(
        description="Name of the source file",
    )
    sheets: list[Sheet] = Field(
        default_factory=list,
        description="Sheets in workbook order",
    )

    @property
    def sheet_names(self) -> list[str]:
        return [sheet.name for sheet in self.sheets]

    def get_sheet(self, name: str) -> Sheet | None:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        return None


class ExtractionResult(BaseModel):
    """
    Outcome of recovering JSON from a model completion.

    Exactly one of two shapes: ``success=True`` with ``value`` set, or
    ``success=False`` with ``error_code="MALFORMED_PAYLOAD"``. ``raw_text``
    is always the original completion text.

    Attributes:
        success: Whether a JSON payload was recovered.
        value: The parsed payload (success only).
        raw_text: The completion text exactly as received.
        error_code: Machine-readable failure code (failure only).
        message: Human-readable failure description (failure only).
    """

    success: bool = Field(
        description="Whether a JSON payload was recovered",
    )
    value: Any = Field(
        default=None,
        description="The parsed JSON payload",
    )
    raw_text: str = Field(
        description="The completion text exactly as received",
    )
    error_code: str | None = Field(
        default=None,
        description="Machine-readable failure code",
    )
    message: str | None = Field(
        default=None,
        description="Human-readable failure description",
    )

    @classmethod
    def succeeded(cls, value: Any, raw_text: str) -> "ExtractionResult":
        return cls(success=True, value=value, raw_text=raw_text)

    @classmethod
    def failed(cls, raw_text: str, message: str) -> "ExtractionResult":
        return cls(
            success=False,
            raw_text=raw_text,
            error_code="MALFORMED_PAYLOAD",
            message=message,
        )

    def unwrap(self) -> Any:
        """
        Return the parsed value, raising on failure.

        Raises:
            MalformedPayloadError: If extraction failed.
        """
        if not self.success:
            from sheet2sql.exceptions.assistant_exceptions import MalformedPayloadError

            raise MalformedPayloadError(raw_text=self.raw_text, reason=self.message)
        return self.value
