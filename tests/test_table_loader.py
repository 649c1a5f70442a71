"""
Unit tests for the TableLoader.
"""

from __future__ import annotations

import io
import zipfile
from datetime import datetime
from typing import Any, Callable, Dict, List

import pytest

from statement_parser.config import LoaderConfig
from statement_parser.errors import MalformedTable, UnsupportedCapability
from statement_parser.schema import FileType
from statement_parser.table_loader import TableLoader

MakeXlsx = Callable[[Dict[str, List[List[Any]]]], bytes]


@pytest.fixture
def loader() -> TableLoader:
    return TableLoader()


# ======================================================================
# Delimited text
# ======================================================================

class TestCsv:
    def test_single_sheet_with_header_row(self, loader: TableLoader, checking_csv: bytes) -> None:
        sheets = loader.load(checking_csv, FileType.CSV, name="checking")
        assert len(sheets) == 1
        sheet = sheets[0]
        assert sheet.name == "checking"
        assert sheet.headers == ["Date", "Description", "Amount"]
        # blank line skipped
        assert len(sheet.rows) == 4
        assert sheet.rows[0] == {
            "Date": "01/05/2024",
            "Description": "DEBIT CARD PURCHASE STARBUCKS 4821",
            "Amount": "-4.75",
        }

    def test_header_order_preserved(self, loader: TableLoader) -> None:
        data = b"Zeta,Alpha,Mid\n1,2,3\n"
        sheet = loader.load(data, FileType.CSV)[0]
        assert list(sheet.rows[0].keys()) == ["Zeta", "Alpha", "Mid"]

    def test_semicolon_delimiter(self, loader: TableLoader) -> None:
        data = (
            "Datum;Omschrijving;Bedrag\n"
            "14-03-2024;Albert Heijn;-12,50\n"
            "15-03-2024;Salaris;2500,00\n"
            "16-03-2024;Huur;-900,00\n"
        ).encode("utf-8")
        sheet = loader.load(data, FileType.CSV)[0]
        assert sheet.headers == ["Datum", "Omschrijving", "Bedrag"]
        assert sheet.rows[0]["Bedrag"] == "-12,50"

    def test_quoted_thousands(self, loader: TableLoader) -> None:
        data = b'Date,Description,Amount\n01/02/2024,Rent,"-1,200.00"\n01/03/2024,Pay,"3,000.00"\n'
        sheet = loader.load(data, FileType.CSV)[0]
        assert sheet.rows[0]["Amount"] == "-1,200.00"

    def test_duplicate_and_blank_headers(self, loader: TableLoader) -> None:
        data = b"Amount,Amount,,Amount\n1,2,3,4\n"
        sheet = loader.load(data, FileType.CSV)[0]
        assert sheet.headers == ["Amount", "Amount_1", "__EMPTY", "Amount_2"]
        assert sheet.rows[0]["Amount_2"] == "4"

    def test_short_rows_padded(self, loader: TableLoader) -> None:
        data = b"A,B,C\n1\n"
        sheet = loader.load(data, FileType.CSV)[0]
        assert sheet.rows[0] == {"A": "1", "B": "", "C": ""}

    def test_cells_beyond_header_dropped(self, loader: TableLoader) -> None:
        data = b"Date,Description,Amount\n01/02/2024,Coffee,-4.50,EXTRA\n"
        sheet = loader.load(data, FileType.CSV)[0]
        assert sheet.headers == ["Date", "Description", "Amount"]
        assert sheet.rows == [
            {"Date": "01/02/2024", "Description": "Coffee", "Amount": "-4.50"}
        ]

    def test_row_blank_within_header_width_skipped(self, loader: TableLoader) -> None:
        data = b"A,B\n,,stray\n1,2\n"
        sheet = loader.load(data, FileType.CSV)[0]
        assert sheet.rows == [{"A": "1", "B": "2"}]

    def test_bom_stripped(self, loader: TableLoader) -> None:
        data = "\ufeffDate,Amount\n01/02/2024,5\n".encode("utf-8")
        sheet = loader.load(data, FileType.CSV)[0]
        assert sheet.headers[0] == "Date"

    def test_windows_1252_fallback(self, loader: TableLoader) -> None:
        data = "Date,Description\n01/02/2024,Café\n".encode("cp1252")
        sheet = loader.load(data, FileType.CSV)[0]
        assert sheet.rows[0]["Description"] == "Café"

    def test_undecodable_bytes(self) -> None:
        loader = TableLoader(LoaderConfig(csv_encodings=("utf-8",)))
        with pytest.raises(MalformedTable):
            loader.load(b"Date\n\xff\xfe\x80", FileType.CSV)

    def test_empty_file(self, loader: TableLoader) -> None:
        sheet = loader.load(b"", FileType.CSV)[0]
        assert sheet.headers == []
        assert sheet.rows == []


# ======================================================================
# Workbooks
# ======================================================================

class TestXlsx:
    def test_sheets_in_workbook_order(self, loader: TableLoader, make_xlsx: MakeXlsx) -> None:
        data = make_xlsx({
            "Summary": [["Account summary"], ["Opening balance", 100]],
            "Transactions": [["Date", "Amount"], ["01/02/2024", -5]],
        })
        sheets = loader.load(data, FileType.XLSX)
        assert [s.name for s in sheets] == ["Summary", "Transactions"]
        assert sheets[0].headers[0] == "Account summary"
        assert sheets[1].rows == [{"Date": "01/02/2024", "Amount": "-5"}]

    def test_cell_values_become_text(self, loader: TableLoader, make_xlsx: MakeXlsx) -> None:
        data = make_xlsx({
            "Sheet1": [
                ["Date", "Description", "Amount", "Posted", "Flag"],
                [datetime(2024, 3, 14), "Coffee", 45.2, datetime(2024, 3, 14, 12, 0), True],
                [datetime(2024, 3, 15), None, 100.0, None, False],
            ],
        })
        rows = loader.load(data, FileType.XLSX)[0].rows
        assert rows[0] == {
            "Date": "2024-03-14",
            "Description": "Coffee",
            "Amount": "45.2",
            "Posted": "2024-03-14 12:00:00",
            "Flag": "TRUE",
        }
        assert rows[1]["Description"] == ""
        assert rows[1]["Amount"] == "100"
        assert rows[1]["Flag"] == "FALSE"

    def test_leading_blank_rows_skipped(self, loader: TableLoader, make_xlsx: MakeXlsx) -> None:
        data = make_xlsx({
            "Sheet1": [[None, None], ["Date", "Amount"], [None, None], ["01/02/2024", 3]],
        })
        sheet = loader.load(data, FileType.XLSX)[0]
        assert sheet.headers == ["Date", "Amount"]
        assert len(sheet.rows) == 1

    def test_mislabelled_xlsx_read_by_signature(
        self, loader: TableLoader, make_xlsx: MakeXlsx
    ) -> None:
        data = make_xlsx({"Sheet1": [["Date", "Amount"], ["01/02/2024", 3]]})
        sheets = loader.load(data, FileType.XLS)
        assert sheets[0].headers == ["Date", "Amount"]

    def test_corrupt_zip(self, loader: TableLoader) -> None:
        with pytest.raises(MalformedTable):
            loader.load(b"PK\x03\x04truncated", FileType.XLSX)

    def test_corrupt_xml_part(self, loader: TableLoader) -> None:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("[Content_Types].xml", "<not-closed")
        with pytest.raises(MalformedTable):
            loader.load(buf.getvalue(), FileType.XLSX)

    def test_corrupt_ole2(self, loader: TableLoader) -> None:
        data = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 504
        with pytest.raises(MalformedTable):
            loader.load(data, FileType.XLS)


class TestXls:
    def test_sheet_and_cells(self, loader: TableLoader, checking_xls: bytes) -> None:
        sheets = loader.load(checking_xls, FileType.XLS)
        assert [s.name for s in sheets] == ["Transactions"]
        sheet = sheets[0]
        assert sheet.headers == ["Date", "Description", "Amount", "Cleared"]
        assert sheet.rows == [
            {"Date": "2024-03-14", "Description": "Coffee house", "Amount": "-4.5",
             "Cleared": "TRUE"},
            {"Date": "2024-03-15", "Description": "Salary payment", "Amount": "2500",
             "Cleared": ""},
        ]

    def test_declared_xlsx_read_by_signature(
        self, loader: TableLoader, checking_xls: bytes
    ) -> None:
        sheets = loader.load(checking_xls, FileType.XLSX)
        assert sheets[0].rows[0]["Date"] == "2024-03-14"


class TestTextUnderWorkbookName:
    def test_tab_separated_xls(self, loader: TableLoader) -> None:
        data = b"Date\tDescription\tAmount\n01/02/2024\tCoffee\t-4.50\n"
        sheets = loader.load(data, FileType.XLS, name="export")
        assert len(sheets) == 1
        assert sheets[0].name == "export"
        assert sheets[0].headers == ["Date", "Description", "Amount"]
        assert sheets[0].rows[0]["Amount"] == "-4.50"

    def test_comma_separated_xlsx(self, loader: TableLoader) -> None:
        data = b"Date,Amount\n01/02/2024,5\n"
        sheet = loader.load(data, FileType.XLSX)[0]
        assert sheet.rows == [{"Date": "01/02/2024", "Amount": "5"}]


# ======================================================================
# PDF
# ======================================================================

class TestPdf:
    def test_pdf_is_a_capability_error(self, loader: TableLoader) -> None:
        with pytest.raises(UnsupportedCapability, match="PDF"):
            loader.load(b"%PDF-1.7 ...", FileType.PDF)
