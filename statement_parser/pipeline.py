"""
Pipeline Orchestrator.

The central entry point that wires together every layer:

    Raw bytes  ->  TableLoader  ->  (per sheet) ColumnClassifier
               ->  RecordNormalizer  ->  SheetSelector
               ->  StatsAggregator + BankDetector  ->  ParseResult

Usage
-----
>>> from statement_parser.pipeline import StatementParser
>>> from statement_parser.config import ParserConfig
>>>
>>> parser = StatementParser(ParserConfig())
>>> result = parser.parse_bytes(raw, "chase_statement.csv")
>>> print(result.to_dict())
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional, Union

from statement_parser.bank_detector import BankDetector
from statement_parser.column_classifier import ColumnClassifier
from statement_parser.config import ParserConfig
from statement_parser.errors import StatementParseError
from statement_parser.logging_setup import configure_logging, get_logger
from statement_parser.normalizer import RecordNormalizer
from statement_parser.schema import FileType, ParseResult
from statement_parser.sheet_selector import SheetSelector
from statement_parser.stats import StatsAggregator
from statement_parser.table_loader import TableLoader

logger = get_logger("pipeline")


class StatementParser:
    """Orchestrates the full statement-parsing pipeline.

    Parameters
    ----------
    config:
        All tuneable knobs.  Defaults suit typical bank exports.
    extra_banks:
        Additional ``{bank_name: [keyword, ...]}`` entries for bank detection.
    today:
        Processing-date provider used for unparseable dates.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        extra_banks: Optional[Dict[str, Iterable[str]]] = None,
        today: Optional[Callable[[], date]] = None,
    ) -> None:
        self._config = config or ParserConfig()

        # Bootstrap logging before anything else
        configure_logging(level=self._config.log_level)

        # Construct layers
        self._loader = TableLoader(config=self._config.loader)
        self._classifier = ColumnClassifier(config=self._config.classifier)
        self._normalizer = RecordNormalizer(today=today)
        self._selector = SheetSelector(
            classifier=self._classifier,
            normalizer=self._normalizer,
            skip_unwinnable=self._config.skip_unwinnable_sheets,
        )
        self._banks = BankDetector(
            config=self._config.detection,
            extra_banks=extra_banks,
        )

        if self._config.custom_bank_path:
            self._banks.load_custom_banks(self._config.custom_bank_path)

        logger.info(
            "Parser initialised: banks=%d, sample_size=%d, strict=%s",
            self._banks.size,
            self._config.classifier.sample_size,
            self._config.strict_mode,
        )

    # ------------------------------------------------------------------ #
    # Entry points
    # ------------------------------------------------------------------ #

    def parse_bytes(
        self,
        data: bytes,
        filename: str,
        file_type: Optional[Union[str, FileType]] = None,
    ) -> ParseResult:
        """Parse an uploaded statement.

        Parameters
        ----------
        data:
            Raw file content.
        filename:
            Original file name; also searched for bank keywords.
        file_type:
            ``csv``, ``xlsx``, ``xls`` or ``pdf``.  Derived from the filename
            suffix when omitted.

        Raises
        ------
        StatementParseError
            In strict mode, for unsupported types, undecodable bytes, or when
            nothing could be extracted.  Otherwise the error is returned as a
            failed ``ParseResult``.
        """
        try:
            return self._run(data, filename, file_type)
        except StatementParseError as exc:
            if self._config.strict_mode:
                raise
            logger.error("Parse of %r failed: %s", filename, exc)
            return ParseResult.failure(str(exc))

    def parse_path(
        self,
        path: Union[str, Path],
        file_type: Optional[Union[str, FileType]] = None,
    ) -> ParseResult:
        """Parse a statement file from disk."""
        path = Path(path)
        return self.parse_bytes(path.read_bytes(), path.name, file_type)

    # ------------------------------------------------------------------ #
    # Core pipeline logic
    # ------------------------------------------------------------------ #

    def _run(
        self,
        data: bytes,
        filename: str,
        file_type: Optional[Union[str, FileType]],
    ) -> ParseResult:
        if file_type is None:
            ftype = FileType.from_filename(filename)
        elif isinstance(file_type, FileType):
            ftype = file_type
        else:
            ftype = FileType.parse(file_type)

        logger.info("Parsing %r as %s (%d bytes)", filename, ftype.value, len(data))

        sheets = self._loader.load(data, ftype, name=Path(filename).stem or None)
        selection = self._selector.select(sheets)
        stats = StatsAggregator.aggregate(selection.transactions)
        bank, account = self._banks.detect(selection.sheet, filename)

        result = ParseResult(
            success=True,
            transactions=selection.transactions,
            total_credits=stats.total_credits,
            total_debits=stats.total_debits,
            period_start=stats.period_start,
            period_end=stats.period_end,
            detected_bank=bank,
            account_number=account,
        )

        logger.info(
            "Parse complete: sheet=%r, transactions=%d, credits=%.2f, debits=%.2f, "
            "period=%s..%s, bank=%s",
            selection.sheet.name,
            len(result.transactions),
            result.total_credits,
            result.total_debits,
            result.period_start,
            result.period_end,
            bank,
        )
        return result


def parse_statement(
    data: bytes,
    filename: str,
    file_type: Optional[Union[str, FileType]] = None,
    config: Optional[ParserConfig] = None,
) -> ParseResult:
    """One-shot convenience wrapper around ``StatementParser.parse_bytes``."""
    return StatementParser(config=config).parse_bytes(data, filename, file_type)
