"""
Bank Detection Engine.

Labels the source institution of a statement by keyword search over the
sheet's text and the upload's filename, and pulls a masked account number
out of the first few rows.

Design decisions
----------------
* The keyword table is *ordered*: the first institution with any hit wins,
  so more specific names must come before generic ones.
* Filename and cell text are searched separately so that a keyword never
  matches across the boundary between the two.
* Users can extend the table at runtime via ``load_custom_banks`` (JSON
  file) or ``add_bank``.  Extensions are appended, never prepended, so the
  built-in priority order is preserved.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from statement_parser.config import DetectionConfig
from statement_parser.logging_setup import get_logger
from statement_parser.schema import Sheet

logger = get_logger("bank_detector")


# ---------------------------------------------------------------------------
# Built-in keyword table
# ---------------------------------------------------------------------------
# Convention: keywords are lower-case substrings; the name is the label
# reported in ``ParseResult.detected_bank``.

_BUILTIN_BANKS: List[Tuple[Tuple[str, ...], str]] = [
    (("chase", "jpmorgan"), "Chase"),
    (("bank of america", "bofa"), "Bank of America"),
    (("wells fargo", "wellsfargo"), "Wells Fargo"),
    (("citibank", "citi"), "Citibank"),
    (("us bank", "usbank"), "U.S. Bank"),
    (("capital one", "capitalone"), "Capital One"),
    (("pnc bank", "pnc"), "PNC Bank"),
    (("td bank", "tdbank"), "TD Bank"),
    (("truist",), "Truist"),
    (("citizens bank",), "Citizens Bank"),
    (("fifth third", "5/3"), "Fifth Third Bank"),
    (("ally bank", "ally"), "Ally Bank"),
    (("discover",), "Discover"),
    (("american express", "amex"), "American Express"),
    (("navy federal",), "Navy Federal Credit Union"),
]

_ACCOUNT_RE = re.compile(r"account.*?(\d{4,})", re.IGNORECASE)


class BankDetector:
    """Ordered keyword matcher for institution names.

    Parameters
    ----------
    config:
        Default label and account-number search depth.
    extra_banks:
        ``{bank_name: [keyword, ...]}`` appended after the built-in table.
    """

    def __init__(
        self,
        config: Optional[DetectionConfig] = None,
        extra_banks: Optional[Dict[str, Iterable[str]]] = None,
    ) -> None:
        self._config = config or DetectionConfig()
        self._table: List[Tuple[Tuple[str, ...], str]] = list(_BUILTIN_BANKS)
        if extra_banks:
            self.add_banks(extra_banks)

    # ------------------------------------------------------------------ #
    # Detection
    # ------------------------------------------------------------------ #

    def detect(self, sheet: Sheet, filename: Optional[str] = None) -> Tuple[str, Optional[str]]:
        """Return ``(bank_name, masked_account_number_or_None)``."""
        text = self._sheet_text(sheet)
        name = (filename or "").lower()

        for keywords, bank in self._table:
            if any(kw in text or kw in name for kw in keywords):
                account = self.extract_account_number(sheet)
                logger.info("Detected bank %r (account=%s)", bank, account)
                return bank, account

        logger.info("No bank keyword matched; using %r", self._config.unknown_bank)
        return self._config.unknown_bank, None

    def extract_account_number(self, sheet: Sheet) -> Optional[str]:
        """Find ``account ... 12345678`` in the first rows; keep only the last 4 digits."""
        for row in sheet.rows[: self._config.account_scan_rows]:
            for value in row.values():
                m = _ACCOUNT_RE.search(value)
                if m:
                    return "****" + m.group(1)[-4:]
        return None

    @staticmethod
    def _sheet_text(sheet: Sheet) -> str:
        parts: List[str] = list(sheet.headers)
        for row in sheet.rows:
            parts.extend(row.values())
        return "\n".join(parts).lower()

    # ------------------------------------------------------------------ #
    # Extension API
    # ------------------------------------------------------------------ #

    def add_bank(self, name: str, keywords: Iterable[str]) -> None:
        """Append an institution to the end of the table.

        Raises
        ------
        ValueError
            If no non-blank keyword is given.
        """
        cleaned = tuple(kw.strip().lower() for kw in keywords if kw and kw.strip())
        if not cleaned:
            raise ValueError(f"Bank {name!r} needs at least one keyword")
        self._table.append((cleaned, name))
        logger.debug("Added bank: %r <- %r", name, cleaned)

    def add_banks(self, mapping: Dict[str, Iterable[str]]) -> None:
        """Bulk-add institutions from a ``{name: [keyword, ...]}`` dict."""
        for name, keywords in mapping.items():
            self.add_bank(name, keywords)

    def load_custom_banks(self, path: Path) -> int:
        """Load institutions from a JSON file (``{name: [keyword, ...]}``).

        Returns the number of entries added.
        """
        with open(path, encoding="utf-8") as fh:
            data: Dict[str, List[str]] = json.load(fh)
        self.add_banks(data)
        logger.info("Loaded %d custom banks from %s", len(data), path)
        return len(data)

    @property
    def size(self) -> int:
        return len(self._table)
