"""
Exception hierarchy.

Two families:

* ``StatementParseError`` and its subclasses are *systemic* failures that
  abort a parse (bad bytes, unsupported file type, nothing extractable).
* ``RowRejected`` and its subclasses describe a single unusable row.  They
  are raised and caught inside the normaliser and never reach the caller.
"""

from __future__ import annotations


class StatementParseError(Exception):
    """Base class for failures that abort a whole parse."""


class UnsupportedExtension(StatementParseError, ValueError):
    """The file suffix / declared type is not csv, xlsx, xls or pdf."""


class UnsupportedCapability(StatementParseError):
    """The file type is recognised but its parsing is not implemented."""


class MalformedTable(StatementParseError):
    """The byte stream could not be decoded into a table."""


class NoTransactionsExtracted(StatementParseError):
    """Every sheet and row was rejected."""


class RowRejected(Exception):
    """A single row could not be turned into a transaction."""


class InvalidDate(RowRejected):
    """No usable date cell was found in the row."""


class InvalidNumeric(RowRejected):
    """The row's amount is zero or not a number."""
