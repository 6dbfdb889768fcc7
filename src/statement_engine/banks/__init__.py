from ..registry import BankParser, ParserRegistry
from .icici import PARSER as ICICI_PARSER
from .hdfc import PARSER as HDFC_PARSER
from .idfc import PARSER as IDFC_PARSER

# Detection order. First match wins, so this order is part of the contract:
# ICICI is checked first, then HDFC, then IDFC.
DEFAULT_PARSERS = (
    ICICI_PARSER,
    HDFC_PARSER,
    IDFC_PARSER,
)


def default_registry() -> ParserRegistry:
    """Registry holding the built-in bank parsers in detection order."""
    return ParserRegistry(DEFAULT_PARSERS)


__all__ = [
    'BankParser',
    'DEFAULT_PARSERS',
    'ICICI_PARSER',
    'HDFC_PARSER',
    'IDFC_PARSER',
    'default_registry',
]
