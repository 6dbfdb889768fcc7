from .generic import GenericFallbackExtractor, GenericResult
from .ai_extraction import AIExtractionAdapter, AIExtractionResult, AITransactionItem, GeminiExtractionClient

__all__ = [
    'GenericFallbackExtractor',
    'GenericResult',
    'AIExtractionAdapter',
    'AIExtractionResult',
    'AITransactionItem',
    'GeminiExtractionClient',
]
