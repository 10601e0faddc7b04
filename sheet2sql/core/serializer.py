"""
Serialization of sheet regions to tab/newline-delimited text.

The text is what gets embedded into prompts for the text-generation API.
Row layout:

    * each present cell contributes its text followed by a tab;
    * an empty cell contributes nothing, not even a tab;
    * every row ends with a newline, including rows with no cells.

So ``{"A1": "x"}`` over ``A1:B2`` serializes to ``"x\\t\\n\\n"``. The tab
count of a row therefore follows the number of present cells rather than
the column span of the range.
"""

from datetime import date, datetime, time

from sheet2sql.core.addressing import column_letters
from sheet2sql.exceptions.assistant_exceptions import InvalidRangeError
from sheet2sql.models.sheet_models import CellRange, CellScalar, Sheet, Workbook


def format_cell_value(value: CellScalar) -> str:
    """
    Render a cell value as prompt text.

    Booleans render as ``true``/``false``, integral floats without a
    fractional part, and temporal values in ISO 8601.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def serialize(sheet: Sheet, cell_range: CellRange) -> str:
    """
    Serialize a rectangular region of a sheet.

    Args:
        sheet: The sheet to read. It is not modified.
        cell_range: Inclusive region to serialize.

    Returns:
        Rows joined by newlines, present cells terminated by tabs.

    Raises:
        InvalidRangeError: If the range start lies after its end.
    """
    if not cell_range.is_ordered:
        raise InvalidRangeError(
            cell_range=cell_range.a1,
            reason="Start position must be before end position",
        )

    letters = [
        column_letters(column)
        for column in range(cell_range.start.column, cell_range.end.column + 1)
    ]

    rows: list[str] = []
    for row in range(cell_range.start.row, cell_range.end.row + 1):
        row_text = ""
        for letter in letters:
            value = sheet.cells.get(f"{letter}{row}")
            if value is not None:
                row_text += f"{format_cell_value(value)}\t"
        rows.append(row_text + "\n")

    return "".join(rows)


def serialize_sheet(sheet: Sheet) -> str:
    """Serialize a sheet's used range; an empty sheet yields ``""``."""
    if sheet.ref is None:
        return ""
    return serialize(sheet, sheet.ref)


def serialize_workbook(workbook: Workbook) -> str:
    """
    Serialize every sheet of a workbook into a single prompt text.

    Format::

        Workbook contains 2 sheets:

        Sheet: Tables
        <rows>
        Sheet: Rules
        <rows>
    """
    text = f"Workbook contains {len(workbook.sheets)} sheets:\n"
    for sheet in workbook.sheets:
        text += f"\nSheet: {sheet.name}\n"
        text += serialize_sheet(sheet)
    return text
