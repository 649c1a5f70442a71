"""
Unit tests for the SheetSelector.
"""

from __future__ import annotations

from typing import List

import pytest

from statement_parser.column_classifier import ColumnClassifier
from statement_parser.errors import NoTransactionsExtracted
from statement_parser.normalizer import RecordNormalizer
from statement_parser.schema import Sheet
from statement_parser.sheet_selector import SheetSelector

HEADERS = ["Date", "Description", "Amount"]


def _statement(name: str, count: int) -> Sheet:
    rows = [
        {
            "Date": f"01/{i + 1:02d}/2024",
            "Description": f"Store number {i}",
            "Amount": f"-{i + 1}.25",
        }
        for i in range(count)
    ]
    return Sheet(name=name, headers=list(HEADERS), rows=rows)


def _notes(name: str, lines: List[str]) -> Sheet:
    return Sheet(name=name, headers=["Notes"], rows=[{"Notes": line} for line in lines])


@pytest.fixture
def selector() -> SheetSelector:
    return SheetSelector(ColumnClassifier(), RecordNormalizer())


# ======================================================================
# Selection
# ======================================================================

class TestSelect:
    def test_most_transactions_wins(self, selector: SheetSelector) -> None:
        sheets = [
            _notes("Summary", ["Summary sheet", "Generated online"]),
            _statement("January", 7),
            _statement("Partial", 4),
        ]
        selection = selector.select(sheets)
        assert selection.index == 1
        assert selection.sheet.name == "January"
        assert len(selection.transactions) == 7
        assert selection.roles.amount == "Amount"

    def test_tie_goes_to_earlier_sheet(self, selector: SheetSelector) -> None:
        sheets = [_statement("First", 3), _statement("Second", 3)]
        assert selector.select(sheets).index == 0

    def test_later_better_sheet_still_found(self, selector: SheetSelector) -> None:
        sheets = [_statement("Small", 2), _notes("Notes", ["Summary sheet"]), _statement("Big", 9)]
        assert selector.select(sheets).sheet.name == "Big"

    def test_empty_sheets_are_skipped(self, selector: SheetSelector) -> None:
        sheets = [Sheet(name="Blank", headers=[]), _statement("Data", 2)]
        assert selector.select(sheets).index == 1

    def test_no_transactions_anywhere(self, selector: SheetSelector) -> None:
        with pytest.raises(NoTransactionsExtracted):
            selector.select([_notes("Notes", ["Summary sheet"]), Sheet(name="Blank", headers=[])])

    def test_no_sheets(self, selector: SheetSelector) -> None:
        with pytest.raises(NoTransactionsExtracted):
            selector.select([])


class TestSkipUnwinnable:
    def test_same_winner_with_prefilter(self) -> None:
        selector = SheetSelector(
            ColumnClassifier(), RecordNormalizer(), skip_unwinnable=True
        )
        sheets = [_statement("A", 5), _statement("B", 5), _statement("C", 3), _statement("D", 6)]
        selection = selector.select(sheets)
        assert selection.sheet.name == "D"

    def test_prefilter_keeps_tie_order(self) -> None:
        selector = SheetSelector(
            ColumnClassifier(), RecordNormalizer(), skip_unwinnable=True
        )
        sheets = [_statement("A", 4), _statement("B", 4)]
        assert selector.select(sheets).index == 0
