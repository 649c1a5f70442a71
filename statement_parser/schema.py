"""
Canonical transaction schema and data models.

Defines the target record (the layout-independent transaction every
statement is normalised into) and the typed structures carried through
the pipeline: sheets, column scores, role maps and the final result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any, Dict, List, Optional

from statement_parser.errors import UnsupportedExtension

# A row maps header -> raw cell text, in source column order.
Row = Dict[str, str]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FileType(str, Enum):
    """Every input format the engine recognises."""

    CSV = "csv"
    XLSX = "xlsx"
    XLS = "xls"
    PDF = "pdf"

    @classmethod
    def parse(cls, value: str) -> "FileType":
        """Case-insensitive lookup; a leading dot is tolerated."""
        key = value.strip().lower().lstrip(".")
        for ft in cls:
            if ft.value == key:
                return ft
        raise UnsupportedExtension(f"Unsupported file type: {key or value!r}")

    @classmethod
    def from_filename(cls, filename: str) -> "FileType":
        suffix = PurePath(filename).suffix
        if not suffix:
            raise UnsupportedExtension(f"Unsupported file type: {filename!r} has no extension")
        return cls.parse(suffix)


class ColumnRole(str, Enum):
    """Semantic classification assigned to a column."""

    DATE = "date"
    DESCRIPTION = "description"
    AMOUNT = "amount"
    DEBIT = "debit"
    CREDIT = "credit"
    BALANCE = "balance"
    UNKNOWN = "unknown"


class TransactionType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

@dataclass
class Sheet:
    """One logical table: a workbook sheet or a whole CSV file."""

    name: str
    headers: List[str]
    rows: List[Row] = field(default_factory=list)


@dataclass
class ColumnScore:
    """Content-predicate hit counters for one header."""

    date_hits: int = 0
    amount_hits: int = 0
    text_hits: int = 0


@dataclass
class ColumnRoles:
    """The role map of a sheet: at most one header per role."""

    date: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[str] = None
    debit: Optional[str] = None
    credit: Optional[str] = None
    balance: Optional[str] = None

    @property
    def has_debit_credit(self) -> bool:
        return self.debit is not None and self.credit is not None

    def role_of(self, header: str) -> ColumnRole:
        for role in (
            ColumnRole.DATE,
            ColumnRole.DESCRIPTION,
            ColumnRole.AMOUNT,
            ColumnRole.DEBIT,
            ColumnRole.CREDIT,
            ColumnRole.BALANCE,
        ):
            if getattr(self, role.value) == header:
                return role
        return ColumnRole.UNKNOWN

    def to_dict(self) -> dict[str, str]:
        return {
            role: header
            for role, header in (
                ("date", self.date),
                ("description", self.description),
                ("amount", self.amount),
                ("debit", self.debit),
                ("credit", self.credit),
                ("balance", self.balance),
            )
            if header is not None
        }


# ---------------------------------------------------------------------------
# Pipeline output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transaction:
    """A canonical, normalised financial movement.

    ``amount`` is never negative; the direction lives in ``type``.
    """

    date: str  # YYYY-MM-DD
    description: str
    amount: float
    type: TransactionType
    merchant: str
    balance: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "date": self.date,
            "description": self.description,
            "amount": self.amount,
            "type": self.type.value,
        }
        if self.balance is not None:
            d["balance"] = self.balance
        d["merchant"] = self.merchant
        return d


@dataclass
class ParseResult:
    """Aggregate result of a full parse."""

    success: bool
    transactions: List[Transaction] = field(default_factory=list)
    total_credits: float = 0.0
    total_debits: float = 0.0
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    detected_bank: Optional[str] = None
    account_number: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, error: str) -> "ParseResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form; unset optional fields are omitted."""
        d: dict[str, Any] = {
            "success": self.success,
            "transactions": [t.to_dict() for t in self.transactions],
        }
        if self.period_start is not None:
            d["periodStart"] = self.period_start
        if self.period_end is not None:
            d["periodEnd"] = self.period_end
        d["totalCredits"] = self.total_credits
        d["totalDebits"] = self.total_debits
        if self.detected_bank is not None:
            d["detectedBank"] = self.detected_bank
        if self.account_number is not None:
            d["accountNumber"] = self.account_number
        if self.error is not None:
            d["error"] = self.error
        return d
