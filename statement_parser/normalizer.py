"""
Record Normalization Layer.

Turns one raw row into a canonical ``Transaction`` given the sheet's role
map.  Rows are handled on a best-effort basis: anything unusable (no date,
zero or non-numeric amount) is dropped and counted, never propagated.

Steps applied per row (in order):
1. Date cell: assigned column, else the first date-like cell
2. Description: assigned column, else the first text-like cell
3. Amount and direction: debit/credit pair, single signed column, or scan
4. Balance (optional, non-fatal)
5. Date normalisation to ``YYYY-MM-DD``
6. Merchant extraction from the description
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Callable, List, Optional, Tuple

from dateutil import parser as date_parser

from statement_parser.column_classifier import (
    looks_like_amount,
    looks_like_date,
    looks_like_text,
)
from statement_parser.errors import InvalidDate, InvalidNumeric, RowRejected
from statement_parser.logging_setup import get_logger
from statement_parser.schema import ColumnRoles, Row, Transaction, TransactionType

logger = get_logger("normalizer")

DEFAULT_DESCRIPTION = "Transaction"


class RecordNormalizer:
    """Row -> ``Transaction`` converter.

    Parameters
    ----------
    today:
        Returns the processing date used when a date cell cannot be parsed.
        Defaults to ``date.today``.
    """

    # Everything that is not part of a plain signed decimal
    _NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")

    # Longest leading decimal of the cleaned text: ``12.5.1`` -> ``12.5``
    _LEADING_FLOAT_RE = re.compile(r"^-?(?:\d+\.?\d*|\.\d+)")

    # Month/day/year fallback pieces, e.g. ``3/14/2024 posted``
    _LEADING_INT_RE = re.compile(r"^\s*(\d+)")

    # Card-network noise at the start of a description
    _MERCHANT_PREFIX_RE = re.compile(
        r"^(?:DEBIT CARD PURCHASE|CREDIT CARD PURCHASE|POS|ATM)(?=\s|$)\s*",
        re.IGNORECASE,
    )
    # Card last-4 digits and reference numbers at the end
    _TRAILING_CARD_RE = re.compile(r"\s+\d{4}$")
    _TRAILING_REF_RE = re.compile(r"\s+#\d+$")

    _MAX_MERCHANT_TOKENS = 3

    def __init__(self, today: Optional[Callable[[], date]] = None) -> None:
        self._today = today or date.today

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def normalize_rows(self, rows: List[Row], roles: ColumnRoles) -> List[Transaction]:
        """Normalise every usable row, preserving source order."""
        transactions: List[Transaction] = []
        rejected = 0
        for index, row in enumerate(rows):
            try:
                transactions.append(self.normalize_row(row, roles))
            except RowRejected as exc:
                rejected += 1
                logger.debug("Skipping row %d: %s", index, exc)

        logger.debug(
            "Normalised %d rows: %d transactions, %d rejected",
            len(rows), len(transactions), rejected,
        )
        return transactions

    def normalize_row(self, row: Row, roles: ColumnRoles) -> Transaction:
        """Convert one row.

        Raises
        ------
        InvalidDate
            If the row has no date-like cell.
        InvalidNumeric
            If the amount is zero or not a number.
        """
        date_raw = self._date_cell(row, roles)
        description = self._description(row, roles)
        amount, tx_type = self._amount(row, roles)
        balance = self._balance(row, roles)

        return Transaction(
            date=self.normalize_date(date_raw),
            description=description,
            amount=amount,
            type=tx_type,
            balance=balance,
            merchant=self.extract_merchant(description),
        )

    @classmethod
    def parse_number(cls, raw: str) -> Optional[float]:
        """Parse a money cell by discarding everything but digits, ``.`` and ``-``.

        Returns ``None`` when nothing numeric remains.  Parentheses and
        trailing ``CR``/``DR`` markers carry no sign here.
        """
        cleaned = cls._NON_NUMERIC_RE.sub("", raw)
        m = cls._LEADING_FLOAT_RE.match(cleaned)
        if not m:
            return None
        return float(m.group(0))

    def normalize_date(self, raw: str) -> str:
        """Return *raw* as ``YYYY-MM-DD``.

        Tries a general-purpose parse (month first), then an explicit
        ``month/day/year`` split.  If both fail the processing date is used.
        """
        text = raw.strip()
        today = self._today()
        try:
            parsed = date_parser.parse(
                text, default=datetime(today.year, 1, 1), ignoretz=True
            )
            return parsed.date().isoformat()
        except (ValueError, OverflowError):
            pass

        parts = text.split("/")
        if len(parts) == 3:
            nums = [self._LEADING_INT_RE.match(p) for p in parts]
            if all(nums):
                month, day, year = (int(m.group(1)) for m in nums)
                try:
                    return date(year, month, day).isoformat()
                except (ValueError, OverflowError):
                    pass

        logger.warning("Unparseable date %r; using processing date %s", raw, today)
        return today.isoformat()

    @classmethod
    def extract_merchant(cls, description: str) -> str:
        """Best-effort merchant name from a free-text description.

        >>> RecordNormalizer.extract_merchant("DEBIT CARD PURCHASE STARBUCKS 4821")
        'STARBUCKS'
        """
        merchant = cls._MERCHANT_PREFIX_RE.sub("", description, count=1)
        merchant = cls._TRAILING_CARD_RE.sub("", merchant)
        merchant = cls._TRAILING_REF_RE.sub("", merchant)
        merchant = merchant.strip()

        parts = merchant.split()
        if len(parts) > cls._MAX_MERCHANT_TOKENS:
            merchant = " ".join(parts[: cls._MAX_MERCHANT_TOKENS])

        return merchant or description

    # ------------------------------------------------------------------ #
    # Field resolution
    # ------------------------------------------------------------------ #

    @staticmethod
    def _date_cell(row: Row, roles: ColumnRoles) -> str:
        if roles.date is not None:
            value = row.get(roles.date, "")
            if value.strip():
                return value
        for value in row.values():
            if looks_like_date(value):
                return value
        raise InvalidDate("no date-like cell")

    @staticmethod
    def _description(row: Row, roles: ColumnRoles) -> str:
        if roles.description is not None:
            value = row.get(roles.description, "")
            if value.strip():
                return value.strip()
        for header, value in row.items():
            if header != roles.date and looks_like_text(value):
                return value.strip()
        return DEFAULT_DESCRIPTION

    def _amount(self, row: Row, roles: ColumnRoles) -> Tuple[float, TransactionType]:
        value: Optional[float] = 0.0
        tx_type = TransactionType.DEBIT

        if roles.has_debit_credit:
            debit_raw = row.get(roles.debit, "")
            credit_raw = row.get(roles.credit, "")
            # A populated debit wins even when credit is populated too.
            if debit_raw.strip() and self.parse_number(debit_raw) != 0:
                value = self.parse_number(debit_raw)
                tx_type = TransactionType.DEBIT
            elif credit_raw.strip() and self.parse_number(credit_raw) != 0:
                value = self.parse_number(credit_raw)
                tx_type = TransactionType.CREDIT
        else:
            if roles.amount is not None:
                raw = row.get(roles.amount, "")
            else:
                raw = self._scan_amount(row, roles)
            if raw is not None:
                value = self.parse_number(raw)
                # No explicit minus sign means money in.
                if value is not None and value < 0:
                    tx_type = TransactionType.DEBIT
                else:
                    tx_type = TransactionType.CREDIT

        if value is None:
            raise InvalidNumeric("amount is not a number")
        amount = abs(value)
        if amount == 0:
            raise InvalidNumeric("amount is zero")
        return amount, tx_type

    @staticmethod
    def _scan_amount(row: Row, roles: ColumnRoles) -> Optional[str]:
        for header, value in row.items():
            if header in (roles.date, roles.description):
                continue
            if looks_like_amount(value):
                return value
        return None

    def _balance(self, row: Row, roles: ColumnRoles) -> Optional[float]:
        if roles.balance is None:
            return None
        raw = row.get(roles.balance, "")
        if not raw.strip():
            return None
        return self.parse_number(raw)
