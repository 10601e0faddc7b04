"""
Column-letter arithmetic and A1-notation parsing.

Spreadsheet columns are numbered in bijective base-26: A=1 ... Z=26, AA=27,
AB=28 ... ZZ=702, AAA=703. There is no zero digit, which is why
``column_letters`` decrements before every division.

Example:
    >>> column_index("AB")
    28
    >>> column_letters(703)
    'AAA'
    >>> parse_cell_range("b2:d10").a1
    'B2:D10'
"""

import re

from sheet2sql.exceptions.assistant_exceptions import (
    InvalidArgumentError,
    InvalidFormatError,
    InvalidRangeError,
)
from sheet2sql.models.sheet_models import CellAddress, CellRange

_COLUMN_PATTERN = re.compile(r"[A-Z]+")
_CELL_PATTERN = re.compile(r"\$?([A-Za-z]+)\$?(\d+)")


def column_index(letters: str) -> int:
    """
    Convert a column label to its 1-based number.

    Args:
        letters: One or more uppercase ASCII letters, e.g. "A", "AZ".

    Returns:
        The column number (A=1).

    Raises:
        InvalidFormatError: If the label is empty or contains anything
            other than A-Z.
    """
    if not isinstance(letters, str) or not _COLUMN_PATTERN.fullmatch(letters):
        raise InvalidFormatError(
            value=str(letters),
            reason="Column label must be one or more uppercase letters A-Z",
        )

    index = 0
    for char in letters:
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index


def column_letters(index: int) -> str:
    """
    Convert a 1-based column number to its label.

    Args:
        index: Column number, at least 1.

    Returns:
        The column label, e.g. 27 -> "AA".

    Raises:
        InvalidArgumentError: If index is not a positive integer.
    """
    if isinstance(index, bool) or not isinstance(index, int) or index <= 0:
        raise InvalidArgumentError(
            argument="index",
            value=index,
            reason="Column index must be a positive integer",
        )

    letters = ""
    while index > 0:
        index -= 1
        letters = chr(ord("A") + index % 26) + letters
        index //= 26
    return letters


def parse_cell_address(reference: str) -> CellAddress:
    """
    Parse a single A1 reference such as "B7" or "$B$7".

    Lowercase letters and surrounding whitespace are accepted.

    Raises:
        InvalidFormatError: If the reference is malformed or its row is 0.
    """
    match = _CELL_PATTERN.fullmatch(reference.strip()) if isinstance(reference, str) else None
    if not match:
        raise InvalidFormatError(
            value=str(reference),
            reason="Expected a cell reference like 'A1'",
        )

    row = int(match.group(2))
    if row < 1:
        raise InvalidFormatError(value=reference, reason="Row numbers start at 1")

    return CellAddress(column=column_index(match.group(1).upper()), row=row)


def parse_cell_range(reference: str) -> CellRange:
    """
    Parse an A1 range such as "A1:C10", or a single cell "B2".

    Args:
        reference: Range in A1 notation.

    Returns:
        CellRange with start at or before end.

    Raises:
        InvalidFormatError: If either corner is malformed.
        InvalidRangeError: If the start lies after the end in either
            dimension.
    """
    if not isinstance(reference, str):
        raise InvalidFormatError(value=str(reference), reason="Expected a range like 'A1:C10'")

    parts = reference.split(":")
    if len(parts) == 1:
        address = parse_cell_address(parts[0])
        return CellRange(start=address, end=address)
    if len(parts) != 2:
        raise InvalidFormatError(value=reference, reason="Expected a range like 'A1:C10'")

    cell_range = CellRange(
        start=parse_cell_address(parts[0]),
        end=parse_cell_address(parts[1]),
    )
    if not cell_range.is_ordered:
        raise InvalidRangeError(
            cell_range=cell_range.a1,
            reason="Start position must be before end position",
        )
    return cell_range
