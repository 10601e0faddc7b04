"""
Pure functions at the heart of the assistant.

- addressing: bijective base-26 column labels and A1 parsing
- serializer: sheet regions to tab/newline prompt text
- extractor: JSON recovery from model completions
"""

from sheet2sql.core.addressing import (
    column_index,
    column_letters,
    parse_cell_address,
    parse_cell_range,
)
from sheet2sql.core.extractor import extract
from sheet2sql.core.serializer import (
    format_cell_value,
    serialize,
    serialize_sheet,
    serialize_workbook,
)

__all__ = [
    "column_index",
    "column_letters",
    "parse_cell_address",
    "parse_cell_range",
    "format_cell_value",
    "serialize",
    "serialize_sheet",
    "serialize_workbook",
    "extract",
]
