"""
Table Loader.

Decodes raw file bytes into ordered ``Sheet`` objects:

- Delimited text (CSV) -> exactly one sheet, delimiter auto-detected
- XLSX workbooks (openpyxl) -> one sheet per worksheet, in workbook order
- Legacy XLS workbooks (xlrd) -> one sheet per worksheet, in workbook order
- Workbook uploads without a ZIP or OLE2 signature -> read as delimited text
- PDF -> recognised but not supported; fails immediately

Every sheet uses its own first non-blank row as headers.  Cells are
converted to raw strings so that downstream classification only ever
deals with text, whatever the source format.
"""

from __future__ import annotations

import csv
import io
import zipfile
from datetime import date, datetime, time
from typing import Any, Iterable, List, Optional, Sequence

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from statement_parser.config import LoaderConfig
from statement_parser.errors import MalformedTable, UnsupportedCapability
from statement_parser.logging_setup import get_logger
from statement_parser.schema import FileType, Row, Sheet

logger = get_logger("table_loader")

EMPTY_HEADER = "__EMPTY"

_ZIP_MAGIC = b"PK\x03\x04"
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"


def _cell_to_text(val: Any) -> str:
    """Render a workbook cell value as the raw string a CSV export would hold."""
    if val is None:
        return ""
    if isinstance(val, bool):
        return "TRUE" if val else "FALSE"
    if isinstance(val, datetime):
        if val.time() == time(0, 0):
            return val.date().isoformat()
        return val.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(val, (date, time)):
        return val.isoformat()
    if isinstance(val, float):
        if val.is_integer():
            return str(int(val))
        return repr(val)
    return str(val)


def _dedupe_headers(raw: Sequence[str]) -> List[str]:
    """Make header names unique: ``Amount, Amount`` -> ``Amount, Amount_1``.

    Blank headers become ``__EMPTY`` and are de-duplicated the same way.
    """
    headers: List[str] = []
    used: set[str] = set()
    for cell in raw:
        name = cell.strip() or EMPTY_HEADER
        candidate = name
        n = 1
        while candidate in used:
            candidate = f"{name}_{n}"
            n += 1
        if candidate != name:
            logger.debug("Duplicate header %r renamed to %r", name, candidate)
        used.add(candidate)
        headers.append(candidate)
    return headers


def _is_blank(cells: Iterable[str]) -> bool:
    return all(not c.strip() for c in cells)


def _build_sheet(name: str, grid: Iterable[Sequence[str]]) -> Sheet:
    """Turn a grid of text cells into a sheet keyed by its first non-blank row.

    Short rows are padded with ``""``; cells beyond the header width are
    dropped.
    """
    headers: Optional[List[str]] = None
    rows: List[Row] = []
    for cells in grid:
        if headers is None:
            if not _is_blank(cells):
                headers = _dedupe_headers(cells)
            continue
        cells = list(cells[: len(headers)])
        if _is_blank(cells):
            continue
        cells.extend([""] * (len(headers) - len(cells)))
        rows.append(dict(zip(headers, cells)))

    if headers is None:
        return Sheet(name=name, headers=[])
    return Sheet(name=name, headers=headers, rows=rows)


class TableLoader:
    """Decode raw bytes into sheets.

    Parameters
    ----------
    config:
        Decoding fallbacks and delimiter candidates.
    """

    def __init__(self, config: Optional[LoaderConfig] = None) -> None:
        self._config = config or LoaderConfig()

    def load(
        self,
        data: bytes,
        file_type: FileType,
        name: Optional[str] = None,
    ) -> List[Sheet]:
        """Return the sheets contained in *data*, in source order.

        Raises
        ------
        UnsupportedCapability
            For PDF input.
        MalformedTable
            If the bytes cannot be decoded as the declared format.
        """
        if file_type is FileType.PDF:
            raise UnsupportedCapability(
                "PDF statements are not supported; export the statement as CSV or Excel"
            )
        if file_type is FileType.CSV:
            return [self.load_csv(data, name or "Sheet1")]

        # Workbook exports are frequently mislabelled; trust the signature.
        if data.startswith(_ZIP_MAGIC):
            return self.load_xlsx(data)
        if data.startswith(_OLE2_MAGIC):
            return self.load_xls(data)

        # Many banks serve tab or comma separated text under an .xls name.
        logger.info("No workbook signature in %s upload; reading as delimited text",
                    file_type.value)
        return [self.load_csv(data, name or "Sheet1")]

    # ------------------------------------------------------------------ #
    # Delimited text
    # ------------------------------------------------------------------ #

    def load_csv(self, data: bytes, name: str = "Sheet1") -> Sheet:
        text = self._decode(data)
        delimiter = self._sniff_delimiter(text)
        try:
            grid = list(csv.reader(io.StringIO(text, newline=""), delimiter=delimiter))
        except csv.Error as exc:
            raise MalformedTable(f"Cannot read delimited text: {exc}") from exc

        sheet = _build_sheet(name, grid)
        logger.info(
            "Loaded CSV %r: %d rows x %d cols (delimiter=%r)",
            name, len(sheet.rows), len(sheet.headers), delimiter,
        )
        return sheet

    def _decode(self, data: bytes) -> str:
        for encoding in self._config.csv_encodings:
            try:
                return data.decode(encoding)
            except UnicodeDecodeError:
                logger.debug("CSV is not valid %s", encoding)
        raise MalformedTable(
            "Cannot decode delimited text with any of: "
            + ", ".join(self._config.csv_encodings)
        )

    def _sniff_delimiter(self, text: str) -> str:
        sample = "\n".join(text.splitlines()[:20])
        try:
            dialect = csv.Sniffer().sniff(sample, delimiters=self._config.csv_delimiters)
        except csv.Error:
            return ","
        return dialect.delimiter

    # ------------------------------------------------------------------ #
    # Workbooks
    # ------------------------------------------------------------------ #

    def load_xlsx(self, data: bytes) -> List[Sheet]:
        sheets: List[Sheet] = []
        try:
            wb = openpyxl.load_workbook(io.BytesIO(data), read_only=True, data_only=True)
            try:
                for ws in wb.worksheets:
                    grid = (
                        [_cell_to_text(c) for c in row]
                        for row in ws.iter_rows(values_only=True)
                    )
                    sheet = _build_sheet(ws.title, grid)
                    logger.info("Parsing sheet: %s (%d rows x %d cols)",
                                sheet.name, len(sheet.rows), len(sheet.headers))
                    sheets.append(sheet)
            finally:
                wb.close()
        except (
            InvalidFileException,
            zipfile.BadZipFile,
            KeyError,
            ValueError,
            OSError,
            SyntaxError,  # corrupt XML parts (ElementTree ParseError, lxml)
        ) as exc:
            raise MalformedTable(f"Cannot read XLSX workbook: {exc}") from exc

        if not sheets:
            logger.warning("Workbook contains no worksheets")
        return sheets

    def load_xls(self, data: bytes) -> List[Sheet]:
        sheets: List[Sheet] = []
        try:
            book = xlrd.open_workbook(file_contents=data)
            for xs in book.sheets():
                grid = (
                    [self._xls_cell_text(cell, book.datemode) for cell in xs.row(r)]
                    for r in range(xs.nrows)
                )
                sheet = _build_sheet(xs.name, grid)
                logger.info("Parsing sheet: %s (%d rows x %d cols)",
                            sheet.name, len(sheet.rows), len(sheet.headers))
                sheets.append(sheet)
        except (xlrd.XLRDError, CompDocError, ValueError, IndexError, OSError) as exc:
            raise MalformedTable(f"Cannot read XLS workbook: {exc}") from exc

        if not sheets:
            logger.warning("Workbook contains no worksheets")
        return sheets

    @staticmethod
    def _xls_cell_text(cell: Any, datemode: int) -> str:
        if cell.ctype == xlrd.XL_CELL_DATE:
            try:
                return _cell_to_text(xlrd.xldate_as_datetime(cell.value, datemode))
            except xlrd.xldate.XLDateError:
                return _cell_to_text(cell.value)
        if cell.ctype == xlrd.XL_CELL_BOOLEAN:
            return _cell_to_text(bool(cell.value))
        if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK, xlrd.XL_CELL_ERROR):
            return ""
        return _cell_to_text(cell.value)
