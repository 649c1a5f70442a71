"""
Column Classifier.

Infers what each column of an unknown statement export holds by looking at
cell *content* rather than header names, so it works regardless of the
bank or the language of the export.

Three independent predicates are evaluated on a sample of leading rows:

* ``looks_like_date``
* ``looks_like_amount``
* ``looks_like_text``

The resulting per-column hit counts are turned into a role map in a single
forward pass.  Ties always resolve to the earliest header.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from dateutil import parser as date_parser

from statement_parser.config import ClassifierConfig
from statement_parser.logging_setup import get_logger
from statement_parser.schema import ColumnRoles, ColumnScore, Sheet

logger = get_logger("column_classifier")

_DATE_SEPARATOR_RE = re.compile(r"[/\-.]")
_DIGIT_RE = re.compile(r"\d")
_DATE_PATTERN_RE = re.compile(r"^\d{1,4}[/\-.]\d{1,2}[/\-.]\d{1,4}$")
_REVERSE_DATE_PATTERN_RE = re.compile(r"^\d{1,2}[/\-.]\d{1,2}[/\-.]\d{2,4}$")

_AMOUNT_STRIP_RE = re.compile(r"[$€£¥₹₽₩,\s]")
_AMOUNT_RE = re.compile(r"^-?\d+\.?\d*$")
_CENTS_SUFFIX_RE = re.compile(r"\d+[.,]\d{2}$")

# Latin (incl. accented), Cyrillic, Arabic and CJK unified ideographs.
_LETTER_RE = re.compile(r"[a-zA-Z\u00C0-\u024F\u0400-\u04FF\u0600-\u06FF\u4E00-\u9FFF]")


# ---------------------------------------------------------------------------
# Content predicates
# ---------------------------------------------------------------------------

def parses_as_date(value: str) -> bool:
    """True if a general-purpose date parser accepts *value*."""
    try:
        date_parser.parse(value, ignoretz=True)
    except (ValueError, OverflowError):
        return False
    return True


def looks_like_date(value: str) -> bool:
    if not value or len(value) < 6:
        return False
    if _DATE_SEPARATOR_RE.search(value) and _DIGIT_RE.search(value):
        return True
    if _DATE_PATTERN_RE.match(value) or _REVERSE_DATE_PATTERN_RE.match(value):
        return True
    return parses_as_date(value)


def looks_like_amount(value: str) -> bool:
    if not value:
        return False
    cleaned = _AMOUNT_STRIP_RE.sub("", value)
    return bool(_AMOUNT_RE.match(cleaned) or _CENTS_SUFFIX_RE.search(value))


def looks_like_text(value: str) -> bool:
    if not value:
        return False
    return len(value) > 3 and _LETTER_RE.search(value) is not None


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------

class ColumnClassifier:
    """Score the columns of a sheet and assign semantic roles.

    Parameters
    ----------
    config:
        Sampling parameters.
    """

    def __init__(self, config: Optional[ClassifierConfig] = None) -> None:
        self._config = config or ClassifierConfig()

    def score(self, sheet: Sheet) -> Tuple[Dict[str, ColumnScore], int]:
        """Return ``({header: ColumnScore}, sample_size)`` for *sheet*."""
        sample_size = min(self._config.sample_size, len(sheet.rows))
        scores: Dict[str, ColumnScore] = {h: ColumnScore() for h in sheet.headers}

        for row in sheet.rows[:sample_size]:
            for header in sheet.headers:
                value = row.get(header, "").strip()
                if not value:
                    continue
                s = scores[header]
                if looks_like_date(value):
                    s.date_hits += 1
                if looks_like_amount(value):
                    s.amount_hits += 1
                if looks_like_text(value):
                    s.text_hits += 1

        return scores, sample_size

    def classify(self, sheet: Sheet) -> ColumnRoles:
        """Assign roles to the columns of *sheet*."""
        roles = ColumnRoles()
        if not sheet.rows:
            return roles

        scores, sample_size = self.score(sheet)
        headers = sheet.headers

        roles.date = self._best(headers, scores, "date_hits")
        roles.description = self._best(
            headers, scores, "text_hits", exclude=(roles.date,)
        )

        candidates = self._amount_candidates(
            headers, scores, sample_size, exclude=(roles.date, roles.description)
        )
        if len(candidates) >= 2:
            roles.debit = candidates[0]
            roles.credit = candidates[1]
            if len(candidates) >= 3:
                roles.balance = candidates[2]
        elif len(candidates) == 1:
            roles.amount = candidates[0]

        logger.debug("Sheet %r roles: %s", sheet.name, roles.to_dict())
        return roles

    @staticmethod
    def _best(
        headers: List[str],
        scores: Dict[str, ColumnScore],
        attr: str,
        exclude: Tuple[Optional[str], ...] = (),
    ) -> Optional[str]:
        """Header with the strictly highest non-zero counter; first one wins ties."""
        best: Optional[str] = None
        best_score = 0
        for header in headers:
            if header in exclude:
                continue
            value = getattr(scores[header], attr)
            if value > best_score:
                best_score = value
                best = header
        return best

    @staticmethod
    def _amount_candidates(
        headers: List[str],
        scores: Dict[str, ColumnScore],
        sample_size: int,
        exclude: Tuple[Optional[str], ...] = (),
    ) -> List[str]:
        """Headers with a majority of amount hits, by descending hits.

        Equal hit counts keep header order: a new candidate is inserted
        after every existing one with a score greater than or equal to it.
        """
        ranked: List[Tuple[str, int]] = []
        for header in headers:
            if header in exclude:
                continue
            hits = scores[header].amount_hits
            if hits <= sample_size / 2:
                continue
            pos = len(ranked)
            while pos > 0 and ranked[pos - 1][1] < hits:
                pos -= 1
            ranked.insert(pos, (header, hits))
        return [header for header, _ in ranked]
