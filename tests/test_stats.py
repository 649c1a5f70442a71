"""
Unit tests for the StatsAggregator.
"""

from __future__ import annotations

from statement_parser.schema import Transaction, TransactionType
from statement_parser.stats import StatsAggregator


def _tx(day: str, amount: float, tx_type: TransactionType) -> Transaction:
    return Transaction(
        date=day, description="x", amount=amount, type=tx_type, merchant="x"
    )


class TestAggregate:
    def test_totals_by_type(self) -> None:
        stats = StatsAggregator.aggregate([
            _tx("2024-01-02", 4.75, TransactionType.DEBIT),
            _tx("2024-01-03", 2500.0, TransactionType.CREDIT),
            _tx("2024-01-04", 82.10, TransactionType.DEBIT),
        ])
        assert stats.total_debits == 86.85
        assert stats.total_credits == 2500.0

    def test_no_float_drift(self) -> None:
        stats = StatsAggregator.aggregate([
            _tx("2024-01-02", 0.1, TransactionType.CREDIT),
            _tx("2024-01-02", 0.2, TransactionType.CREDIT),
        ])
        assert stats.total_credits == 0.3

    def test_half_cent_rounds_up(self) -> None:
        stats = StatsAggregator.aggregate([_tx("2024-01-02", 0.125, TransactionType.DEBIT)])
        assert stats.total_debits == 0.13

    def test_period_from_unordered_dates(self) -> None:
        stats = StatsAggregator.aggregate([
            _tx("2024-02-10", 1.0, TransactionType.DEBIT),
            _tx("2023-12-31", 1.0, TransactionType.CREDIT),
            _tx("2024-01-15", 1.0, TransactionType.DEBIT),
        ])
        assert stats.period_start == "2023-12-31"
        assert stats.period_end == "2024-02-10"

    def test_empty(self) -> None:
        stats = StatsAggregator.aggregate([])
        assert stats.total_credits == 0.0
        assert stats.total_debits == 0.0
        assert stats.period_start is None
        assert stats.period_end is None
