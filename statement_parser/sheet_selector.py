"""
Sheet Selector.

Workbooks often carry summary, notes or pivot sheets next to the real
transaction list.  Every sheet is classified and normalised on its own and
the one yielding the most transactions wins; ties go to the earlier sheet.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from statement_parser.column_classifier import ColumnClassifier
from statement_parser.errors import NoTransactionsExtracted
from statement_parser.logging_setup import get_logger
from statement_parser.normalizer import RecordNormalizer
from statement_parser.schema import ColumnRoles, Sheet, Transaction

logger = get_logger("sheet_selector")


@dataclass
class SheetSelection:
    """The winning sheet and what it produced."""

    sheet: Sheet
    index: int
    roles: ColumnRoles
    transactions: List[Transaction] = field(default_factory=list)


class SheetSelector:
    """Pick the sheet that yields the most transactions.

    Parameters
    ----------
    classifier, normalizer:
        The per-sheet layers.  They hold no per-sheet state.
    skip_unwinnable:
        Skip sheets with no more rows than the current best transaction
        count; such a sheet can at most tie, and ties go to the earlier one.
    """

    def __init__(
        self,
        classifier: ColumnClassifier,
        normalizer: RecordNormalizer,
        skip_unwinnable: bool = False,
    ) -> None:
        self._classifier = classifier
        self._normalizer = normalizer
        self._skip_unwinnable = skip_unwinnable

    def select(self, sheets: List[Sheet]) -> SheetSelection:
        """Return the best sheet.

        Raises
        ------
        NoTransactionsExtracted
            If no sheet yields a single transaction.
        """
        best: Optional[SheetSelection] = None

        for index, sheet in enumerate(sheets):
            if not sheet.rows:
                logger.info("Sheet %r is empty; skipped", sheet.name)
                continue
            if self._skip_unwinnable and best is not None and len(sheet.rows) <= len(best.transactions):
                logger.info(
                    "Sheet %r has %d rows, cannot beat %d; skipped",
                    sheet.name, len(sheet.rows), len(best.transactions),
                )
                continue

            roles = self._classifier.classify(sheet)
            transactions = self._normalizer.normalize_rows(sheet.rows, roles)
            logger.info(
                "Sheet %r extracted %d transactions from %d rows",
                sheet.name, len(transactions), len(sheet.rows),
            )

            if best is None or len(transactions) > len(best.transactions):
                best = SheetSelection(
                    sheet=sheet, index=index, roles=roles, transactions=transactions
                )

        if best is None or not best.transactions:
            raise NoTransactionsExtracted(
                f"No transaction data found in any of {len(sheets)} sheet(s)"
            )

        logger.info(
            "Best sheet: %r (index %d) with %d transactions",
            best.sheet.name, best.index, len(best.transactions),
        )
        return best
