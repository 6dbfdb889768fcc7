"""
Bank Statement Extraction Engine

This module consolidates the extraction functionality:
- Bank parsers (ICICI, HDFC, IDFC) behind an ordered registry
- Generic fallback strategies and AI-assisted extraction
- Pipeline orchestration and a synchronous DataFrame facade
"""

# Errors
from .exceptions import (
    StatementParsingError,
    DetectionFailure,
    ExtractionFailure,
    ServiceFailure,
    ValidationFailure,
)

# Models
from .models import ExtractionResult, ParsedBankStatement

# Banks & Registry
from .registry import BankParser, ParserRegistry
from .banks import DEFAULT_PARSERS, default_registry

# Extractors
from .extractors.generic import GenericFallbackExtractor
from .extractors.ai_extraction import AIExtractionAdapter, GeminiExtractionClient

# Pipeline & Facade
from .pipeline import ExtractionPipeline
from .facade import StatementFacade

__all__ = [
    # Errors
    'StatementParsingError',
    'DetectionFailure',
    'ExtractionFailure',
    'ServiceFailure',
    'ValidationFailure',
    # Models
    'ExtractionResult',
    'ParsedBankStatement',
    # Banks & Registry
    'BankParser',
    'ParserRegistry',
    'DEFAULT_PARSERS',
    'default_registry',
    # Extractors
    'GenericFallbackExtractor',
    'AIExtractionAdapter',
    'GeminiExtractionClient',
    # Pipeline & Facade
    'ExtractionPipeline',
    'StatementFacade',
]
