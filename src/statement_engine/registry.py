"""
Parser Registry

Ordered collection of bank parsers. Detection walks the parsers in
registration order and the first match wins, so the order is part of the
registry's contract.
"""
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Tuple

from src.common.logging_config import get_logger
from .exceptions import StatementParsingError
from .models import ExtractionResult

logger = get_logger(__name__)


@dataclass(frozen=True)
class BankParser:
    """
    One supported bank: its detector and its section extractor.

    Both functions are plain callables over the raw content; `detect` and
    `extract` wrap them so a misbehaving bank never takes down the caller.
    """
    bank_name: str
    detect_fn: Callable[[str], bool]
    extract_fn: Callable[[str], ExtractionResult]
    supported_formats: Tuple[str, ...] = ()

    def detect(self, content: str) -> bool:
        try:
            return bool(self.detect_fn(content))
        except Exception as e:
            logger.error(f"Detector for {self.bank_name} failed: {e}", bank=self.bank_name, exc_info=True)
            return False

    def extract(self, content: str) -> ExtractionResult:
        """
        Run the bank's extractor.

        Returns:
            ExtractionResult; failures are reported through `errors`, never raised
        """
        try:
            return self.extract_fn(content)
        except StatementParsingError as e:
            logger.warning(f"{self.bank_name} extraction failed: {e.message}", bank=self.bank_name)
            return ExtractionResult.error([e.message])
        except Exception as e:
            logger.error(f"Unexpected error parsing {self.bank_name} statement: {e}",
                         bank=self.bank_name, exc_info=True)
            return ExtractionResult.error([
                f"Failed to parse {self.bank_name} statement: {e}",
                f"Please ensure the file is a valid {self.bank_name} statement in CSV format."
            ])


class ParserRegistry:
    """
    Registry of bank parsers.

    Built once (see `banks.default_registry`) and read-only afterwards, so a
    single instance can be shared by concurrent extraction calls.
    """

    def __init__(self, parsers: Optional[Iterable[BankParser]] = None):
        """
        Initialize the registry.

        Args:
            parsers: Parsers in detection order
        """
        self._parsers: List[BankParser] = []
        for parser in parsers or []:
            self.add_parser(parser)

    def add_parser(self, parser: BankParser) -> bool:
        """
        Append a parser at the end of the detection order.

        Returns:
            False if a parser with the same bank name is already registered
        """
        if self.get_parser_by_bank_name(parser.bank_name):
            logger.warning(f"Parser already registered: {parser.bank_name}", bank=parser.bank_name)
            return False
        self._parsers.append(parser)
        logger.debug(f"Registered parser: {parser.bank_name}", position=len(self._parsers))
        return True

    def remove_parser(self, bank_name: str) -> bool:
        """Remove a parser by bank name. Returns whether anything was removed."""
        parser = self.get_parser_by_bank_name(bank_name)
        if parser is None:
            return False
        self._parsers.remove(parser)
        logger.debug(f"Removed parser: {parser.bank_name}")
        return True

    def get_parser_by_bank_name(self, bank_name: str) -> Optional[BankParser]:
        """Case-insensitive lookup by bank name."""
        wanted = (bank_name or '').strip().lower()
        for parser in self._parsers:
            if parser.bank_name.lower() == wanted:
                return parser
        return None

    def get_supported_banks(self) -> List[str]:
        return [p.bank_name for p in self._parsers]

    def get_all_parsers(self) -> List[BankParser]:
        return list(self._parsers)

    def detect(self, content: str) -> Optional[BankParser]:
        """
        Find the parser for the given content.

        Returns:
            First parser (in registration order) whose detector matches, or None
        """
        for parser in self._parsers:
            if parser.detect(content):
                logger.info(f"Detected bank format: {parser.bank_name}", bank=parser.bank_name)
                return parser
        logger.info("No registered bank format matched")
        return None

    def __len__(self) -> int:
        return len(self._parsers)

    def __iter__(self) -> Iterator[BankParser]:
        return iter(list(self._parsers))
