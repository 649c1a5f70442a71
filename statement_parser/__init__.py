"""
Statement Parser: heuristic bank-statement normalisation engine.

Reads spreadsheet or delimited-text exports of bank statements with
unknown layouts and turns them into canonical transaction records.

No column mapping is declared up front: dates, descriptions and amounts
are recognised from cell content, so exports from any bank and in any
language are handled the same way.
"""

__version__ = "1.0.0"

from statement_parser.pipeline import StatementParser, parse_statement  # noqa: F401
