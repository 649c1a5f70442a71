"""
Shared fixtures: statement files built in memory or read from ``fixtures/``.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Callable, Dict, List

import openpyxl
import pytest

FIXTURES = Path(__file__).parent / "fixtures"


def _xlsx(sheets: Dict[str, List[List[Any]]]) -> bytes:
    wb = openpyxl.Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(row)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_xlsx() -> Callable[[Dict[str, List[List[Any]]]], bytes]:
    """Build an XLSX workbook ``{sheet_title: rows}`` and return its bytes."""
    return _xlsx


@pytest.fixture
def checking_csv() -> bytes:
    return (
        "Date,Description,Amount\n"
        "01/05/2024,DEBIT CARD PURCHASE STARBUCKS 4821,-4.75\n"
        "01/07/2024,PAYROLL DEPOSIT ACME CORP,2500.00\n"
        "01/03/2024,POS WHOLE FOODS MARKET #10234,-82.10\n"
        "\n"
        "01/09/2024,ONLINE TRANSFER TO SAVINGS,-300.00\n"
    ).encode("utf-8")


@pytest.fixture
def savings_csv() -> bytes:
    """A statement whose text matches no built-in bank keyword."""
    return (
        "Date,Description,Amount\n"
        "02/01/2024,GROCERY OUTLET,-45.10\n"
        "02/03/2024,PAYROLL ACME CORP,1800.00\n"
        "02/05/2024,COFFEE HOUSE,-3.90\n"
    ).encode("utf-8")


@pytest.fixture
def checking_xls() -> bytes:
    """BIFF8 workbook, sheet ``Transactions``: Date | Description | Amount | Cleared.

    Row 1: 2024-03-14 (date-formatted serial), ``Coffee house``, -4.5, TRUE
    Row 2: 2024-03-15, ``Salary payment``, 2500, ``#DIV/0!``
    """
    return (FIXTURES / "checking.xls").read_bytes()
