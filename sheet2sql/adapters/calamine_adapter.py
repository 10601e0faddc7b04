"""
Calamine adapter for workbook reading.

This module provides the CalamineAdapter class that wraps python-calamine
for reading spreadsheets and adapts its row-oriented output into the sparse
Sheet/Workbook models the serializer consumes. python-calamine is a
Rust-based reader with a small memory footprint on large files.

Supported formats:
    - .xlsx (Excel 2007+)
    - .xls (Excel 97-2003)
    - .xlsb (Excel Binary)
    - .xlsm (Excel Macro-Enabled)
    - .ods (OpenDocument Spreadsheet)

Example:
    adapter = CalamineAdapter()
    workbook = adapter.load_workbook("/path/to/requirements.xlsx")
    for sheet in workbook.sheets:
        print(sheet.name, sheet.ref)
"""

import logging
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from python_calamine import CalamineWorkbook

from sheet2sql.core.addressing import column_letters
from sheet2sql.exceptions.assistant_exceptions import (
    FileNotFoundError,
    InvalidFileFormatError,
    ReadError,
    SheetNotFoundError,
)
from sheet2sql.models.sheet_models import CellAddress, CellRange, Sheet, Workbook

logger = logging.getLogger(__name__)


class CalamineAdapter:
    """
    Adapter for python-calamine reading operations.

    Handles file validation, error mapping and conversion of calamine rows
    into sparse sheets keyed by A1 address.

    Attributes:
        SUPPORTED_EXTENSIONS: Tuple of supported file extensions.
    """

    SUPPORTED_EXTENSIONS = (".xlsx", ".xls", ".xlsb", ".xlsm", ".ods")

    def _validate_file_path(self, file_path: str) -> Path:
        """
        Validate that the file exists and has a supported extension.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file extension is not supported.
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(file_path)

        if path.suffix.lower() not in self.SUPPORTED_EXTENSIONS:
            raise InvalidFileFormatError(
                file_path=file_path,
                expected_formats=list(self.SUPPORTED_EXTENSIONS),
                reason=f"Unsupported file extension: {path.suffix}",
            )

        return path

    def _open_workbook(self, file_path: str) -> CalamineWorkbook:
        """
        Open a workbook using calamine.

        Raises:
            InvalidFileFormatError: If the file cannot be parsed.
            ReadError: If an unexpected error occurs during opening.
        """
        path = self._validate_file_path(file_path)

        try:
            return CalamineWorkbook.from_path(str(path))
        except Exception as e:
            error_msg = str(e).lower()
            if "invalid" in error_msg or "corrupt" in error_msg or "format" in error_msg or "zip" in error_msg:
                raise InvalidFileFormatError(
                    file_path=file_path,
                    reason=str(e),
                ) from e
            raise ReadError(
                file_path=file_path,
                operation="open",
                reason=str(e),
            ) from e

    def _normalize_cell_value(self, value: Any) -> Any:
        """
        Normalize a calamine cell value to a sheet scalar.

        Empty strings become None (absent). Whole-number floats become ints,
        since calamine reports every number as float.
        """
        if value is None or value == "":
            return None

        if isinstance(value, float):
            if value.is_integer():
                return int(value)
            return value

        if isinstance(value, (str, int, bool, datetime, date, time)):
            return value

        return str(value)

    def _build_sheet(self, name: str, raw_rows: list[list[Any]]) -> Sheet:
        """
        Convert calamine rows (anchored at A1) into a sparse Sheet.

        The sheet's ref is the bounding box of its present cells.
        """
        cells: dict[str, Any] = {}
        min_col = min_row = None
        max_col = max_row = 0

        for row_number, row in enumerate(raw_rows, start=1):
            for column_number, raw_value in enumerate(row, start=1):
                value = self._normalize_cell_value(raw_value)
                if value is None:
                    continue

                cells[f"{column_letters(column_number)}{row_number}"] = value
                min_col = column_number if min_col is None else min(min_col, column_number)
                min_row = row_number if min_row is None else min(min_row, row_number)
                max_col = max(max_col, column_number)
                max_row = max(max_row, row_number)

        ref = None
        if cells:
            ref = CellRange(
                start=CellAddress(column=min_col, row=min_row),
                end=CellAddress(column=max_col, row=max_row),
            )

        return Sheet(name=name, cells=cells, ref=ref)

    def _read_sheet(self, workbook: CalamineWorkbook, file_path: str, name: str) -> Sheet:
        try:
            raw_rows = workbook.get_sheet_by_name(name).to_python(skip_empty_area=False)
        except Exception as e:
            raise ReadError(
                file_path=file_path,
                operation="read sheet",
                reason=str(e),
            ) from e
        return self._build_sheet(name, raw_rows)

    def get_sheet_names(self, file_path: str) -> list[str]:
        """
        Get the list of sheet names in the workbook.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
        """
        workbook = self._open_workbook(file_path)
        return workbook.sheet_names

    def load_workbook(self, file_path: str, file_name: str | None = None) -> Workbook:
        """
        Read every sheet of a workbook.

        Args:
            file_path: Path to the spreadsheet.
            file_name: Name to record on the workbook. Defaults to the
                file's own name; uploads pass the client-side filename.

        Returns:
            Workbook with sheets in workbook order.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
            ReadError: If a sheet cannot be read.
        """
        workbook = self._open_workbook(file_path)
        sheets = [self._read_sheet(workbook, file_path, name) for name in workbook.sheet_names]

        logger.info(
            "Loaded workbook %s with %d sheet(s), %d cell(s)",
            file_name or Path(file_path).name,
            len(sheets),
            sum(len(sheet.cells) for sheet in sheets),
        )

        return Workbook(
            file_name=file_name or Path(file_path).name,
            sheets=sheets,
        )

    def load_sheet(
        self,
        file_path: str,
        sheet_name: str | None = None,
        sheet_index: int | None = None,
    ) -> Sheet:
        """
        Read a single sheet.

        Args:
            file_path: Path to the spreadsheet.
            sheet_name: Name of the sheet to read. If None and sheet_index is
                None, reads the first sheet.
            sheet_index: Index of the sheet to read (0-based). Used if
                sheet_name is None.

        Raises:
            FileNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file format is not supported.
            SheetNotFoundError: If the specified sheet does not exist.
        """
        workbook = self._open_workbook(file_path)
        available_sheets = workbook.sheet_names

        if sheet_name is not None:
            if sheet_name not in available_sheets:
                raise SheetNotFoundError(
                    sheet_name=sheet_name,
                    available_sheets=available_sheets,
                )
            target_sheet_name = sheet_name
        elif sheet_index is not None:
            if sheet_index < 0 or sheet_index >= len(available_sheets):
                raise SheetNotFoundError(
                    sheet_name=f"index {sheet_index}",
                    available_sheets=available_sheets,
                )
            target_sheet_name = available_sheets[sheet_index]
        else:
            if not available_sheets:
                raise SheetNotFoundError(
                    sheet_name="(first sheet)",
                    available_sheets=[],
                )
            target_sheet_name = available_sheets[0]

        return self._read_sheet(workbook, file_path, target_sheet_name)
