"""
Statement statistics.

Totals are summed in ``Decimal`` so that many small float amounts do not
drift, then rounded half away from zero to whole cents.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from statement_parser.schema import Transaction, TransactionType

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class StatementStats:
    total_credits: float = 0.0
    total_debits: float = 0.0
    period_start: Optional[str] = None
    period_end: Optional[str] = None


def round_cents(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


class StatsAggregator:
    """Single-pass totals and covered date range."""

    @staticmethod
    def aggregate(transactions: Iterable[Transaction]) -> StatementStats:
        credits = Decimal(0)
        debits = Decimal(0)
        start: Optional[str] = None
        end: Optional[str] = None

        for tx in transactions:
            amount = Decimal(repr(tx.amount))
            if tx.type is TransactionType.CREDIT:
                credits += amount
            else:
                debits += amount

            # ISO dates order correctly as plain strings.
            if start is None or tx.date < start:
                start = tx.date
            if end is None or tx.date > end:
                end = tx.date

        return StatementStats(
            total_credits=round_cents(credits),
            total_debits=round_cents(debits),
            period_start=start,
            period_end=end,
        )
