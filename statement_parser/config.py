"""
Configuration module for Statement Parser.

All tuneable parameters live here: sample sizes, decoding fallbacks,
detection defaults and error behaviour. Business logic modules receive
these objects instead of hard-coding the values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple


@dataclass(frozen=True)
class ClassifierConfig:
    """Controls content-based column classification."""

    # Number of leading rows inspected per column when scoring.
    sample_size: int = 10


@dataclass(frozen=True)
class LoaderConfig:
    """Controls how raw bytes are decoded into sheets."""

    # Tried in order when decoding delimited text.
    csv_encodings: Tuple[str, ...] = ("utf-8-sig", "cp1252")

    # Candidate delimiters for sniffing; comma is used when sniffing fails.
    csv_delimiters: str = ",;\t|"


@dataclass(frozen=True)
class DetectionConfig:
    """Controls bank and account-number detection."""

    unknown_bank: str = "Unknown Bank"

    # Only the first N rows are searched for an account number.
    account_scan_rows: int = 5


@dataclass(frozen=True)
class ParserConfig:
    """Top-level configuration aggregating all sub-configs."""

    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)

    log_level: int = logging.INFO

    # When True, systemic failures (bad bytes, unsupported type, no
    # transactions) raise.  When False they are returned as a failed
    # ``ParseResult`` carrying the error message.
    strict_mode: bool = True

    # Skip sheets whose row count cannot beat the current best count.
    # Selection order and tie-breaking are unchanged.
    skip_unwinnable_sheets: bool = False

    # Optional JSON file ``{"Bank Name": ["keyword", ...]}`` appended to the
    # built-in bank keyword table.
    custom_bank_path: Optional[Path] = None
