"""
Extraction Pipeline

Orchestrates statement extraction as an ordered list of attempts:

    AI (optional, awaited) -> bank registry -> generic fallback

The first attempt that yields transactions wins; later attempts are not run
and results are never merged. Post-processing runs on the winner only.
Every public method returns a result object; nothing is raised to the caller.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from src.common.logging_config import get_logger, set_extraction_id
from src.common.models import ParsedTransaction, ParsingOptions, ParsingResult
from src.common.settings import EngineSettings
from .banks import default_registry
from .exceptions import DetectionFailure
from .extractors.ai_extraction import AIExtractionAdapter
from .extractors.generic import GenericFallbackExtractor
from .models import ExtractionResult
from .postprocessing import apply_post_processing
from .registry import ParserRegistry
from .sections import flatten_statement

logger = get_logger(__name__)

NO_PARSER_ERROR = "No suitable parser found for this bank statement format"
NO_PARSER_HINT = "Consider implementing a parser for this bank format"
NO_TRANSACTIONS_ERROR = "No valid transactions found in the parsed data"
EXHAUSTED_ERROR = "No transactions found: no suitable parser or extraction strategy matched the content"
EMPTY_CONTENT_ERROR = "Bank statement content is empty"

# File types read as tables; everything else takes the text path
TABULAR_FILE_TYPES = ('csv',)


@dataclass
class AttemptOutcome:
    """Uniform result of one extraction attempt."""
    method: str
    transactions: List[ParsedTransaction] = field(default_factory=list)
    bank_name: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.transactions)


class ExtractionPipeline:
    """
    Main orchestrator for statement extraction.

    Handles:
    - Optional AI extraction, bounded by a timeout
    - Bank detection and section extraction through the registry
    - Generic fallback strategies
    - Post-processing of the winning attempt
    """

    def __init__(self, registry: Optional[ParserRegistry] = None,
                 ai_adapter: Optional[AIExtractionAdapter] = None,
                 settings: Optional[EngineSettings] = None,
                 generic: Optional[GenericFallbackExtractor] = None):
        """
        Initialize pipeline.

        Args:
            registry: Bank parsers in detection order; shared read-only across calls
            ai_adapter: AI capability; None disables the AI attempt
            settings: Engine configuration
            generic: Fallback extractor
        """
        self.settings = settings or EngineSettings()
        self.registry = registry if registry is not None else default_registry()
        self.ai_adapter = ai_adapter
        self.generic = generic or GenericFallbackExtractor(self.settings)

    @classmethod
    def from_settings(cls, settings: Optional[EngineSettings] = None,
                      registry: Optional[ParserRegistry] = None) -> "ExtractionPipeline":
        """Pipeline with the default registry and, when configured, the Gemini adapter."""
        settings = settings or EngineSettings.from_env()
        return cls(
            registry=registry if registry is not None else default_registry(),
            ai_adapter=AIExtractionAdapter.from_settings(settings),
            settings=settings
        )

    # ========================================================================
    # Full chain
    # ========================================================================

    async def parse_statement(self, content: str, file_type: str = 'csv',
                              options: Optional[ParsingOptions] = None) -> ParsingResult:
        """
        Extract transactions from statement content.

        Args:
            content: Raw statement text
            file_type: 'csv' runs the full chain; any other tag takes the text path
            options: Per-call switches

        Returns:
            ParsingResult; `success=False` only when every attempt failed
        """
        options = options or ParsingOptions()
        extraction_id = set_extraction_id()
        file_type = (file_type or '').strip().lower().lstrip('.')
        tabular = file_type in TABULAR_FILE_TYPES

        logger.info(
            "Extraction started",
            extraction_id=extraction_id,
            file_type=file_type or 'unknown',
            filename=options.filename,
            content_length=len(content or '')
        )

        if not content or not content.strip():
            failure = DetectionFailure(EMPTY_CONTENT_ERROR, filename=options.filename)
            logger.warning(failure.message)
            return ParsingResult.failure([failure.message, EXHAUSTED_ERROR])

        try:
            return await self._run_chain(content, tabular, options)
        except Exception as e:
            logger.error(f"Extraction pipeline error: {e}", exc_info=True)
            return ParsingResult.failure([f"Parser service error: {e}"])

    async def _run_chain(self, content: str, tabular: bool, options: ParsingOptions) -> ParsingResult:
        failed: List[AttemptOutcome] = []

        winner = None
        if self._ai_available(options):
            outcome = await self._attempt_ai(content, options)
            if outcome.success:
                winner = outcome
            else:
                failed.append(outcome)

        local_attempts: List[Callable[[str], AttemptOutcome]] = (
            [self._attempt_registry, self._attempt_generic] if tabular else [self._attempt_generic_text]
        )
        for attempt in local_attempts:
            if winner is not None:
                break
            outcome = attempt(content)
            if outcome.success:
                winner = outcome
            else:
                failed.append(outcome)

        if winner is None:
            return self._exhausted(failed)

        # Failures of earlier attempts degrade to warnings once something won
        warnings = []
        for outcome in failed:
            warnings.extend(outcome.warnings)
            warnings.extend(outcome.errors)
        warnings.extend(winner.warnings)

        transactions, post_warnings = apply_post_processing(winner.transactions, options, self.settings)
        warnings.extend(post_warnings)
        if not transactions:
            logger.warning("Post-processing removed every transaction", method=winner.method)
            return ParsingResult.failure([NO_TRANSACTIONS_ERROR], warnings,
                                         method=winner.method, bank_name=winner.bank_name)

        result = ParsingResult.from_transactions(
            transactions, warnings=warnings, method=winner.method, bank_name=winner.bank_name
        )
        logger.info(
            f"Extraction succeeded via {winner.method}",
            method=winner.method,
            bank=winner.bank_name,
            tx_count=len(transactions),
            total_amount=result.total_amount,
            warning_count=len(warnings)
        )
        return result

    def _exhausted(self, failed: List[AttemptOutcome]) -> ParsingResult:
        errors = []
        warnings = []
        for outcome in failed:
            errors.extend(outcome.errors)
            warnings.extend(outcome.warnings)
        errors.append(EXHAUSTED_ERROR)
        logger.warning(
            "All extraction attempts failed",
            attempts=[o.method for o in failed],
            error_count=len(errors)
        )
        return ParsingResult.failure(errors, warnings)

    def _ai_available(self, options: ParsingOptions) -> bool:
        return bool(options.use_ai and self.settings.ai_enabled and self.ai_adapter is not None)

    # ========================================================================
    # Attempts
    # ========================================================================

    async def _attempt_ai(self, content: str, options: ParsingOptions) -> AttemptOutcome:
        result = await self.ai_adapter.extract(content, options.filename)
        if result.success:
            return AttemptOutcome('ai', result.transactions, warnings=list(result.warnings))
        logger.info("AI attempt failed, falling back", fallback_used=result.fallback_used)
        return AttemptOutcome('ai', warnings=list(result.warnings),
                              errors=[f"AI extraction failed: {result.error}"])

    def _attempt_registry(self, content: str) -> AttemptOutcome:
        parser = self.registry.detect(content)
        if parser is None:
            return AttemptOutcome('registry', errors=[NO_PARSER_ERROR])

        result = parser.extract(content)
        if not result.success or result.data is None:
            return AttemptOutcome('registry', bank_name=parser.bank_name,
                                  warnings=list(result.warnings), errors=list(result.errors))

        transactions, flatten_warnings = flatten_statement(result.data)
        warnings = list(result.warnings) + flatten_warnings
        if not transactions:
            return AttemptOutcome('registry', bank_name=parser.bank_name, warnings=warnings,
                                  errors=[f"{parser.bank_name}: {NO_TRANSACTIONS_ERROR}"])
        return AttemptOutcome('registry', transactions, bank_name=parser.bank_name, warnings=warnings)

    def _attempt_generic(self, content: str, text_only: bool = False) -> AttemptOutcome:
        result = self.generic.extract(content, text_only=text_only)
        method = f"generic:{result.strategy}" if result.strategy else 'generic'
        if result.success:
            return AttemptOutcome(method, result.transactions, warnings=list(result.warnings))
        return AttemptOutcome(method, warnings=list(result.warnings),
                              errors=["No transactions found by the generic extraction strategies"])

    def _attempt_generic_text(self, content: str) -> AttemptOutcome:
        return self._attempt_generic(content, text_only=True)

    # ========================================================================
    # Registry-only surface
    # ========================================================================

    def parse_bank_statement(self, content: str) -> ExtractionResult:
        """
        Detect the bank and return the full structured statement.

        Returns:
            ExtractionResult with the ParsedBankStatement, or errors
        """
        try:
            parser = self.registry.detect(content)
            if parser is None:
                logger.warning(NO_PARSER_ERROR)
                return ExtractionResult.error([NO_PARSER_ERROR], [NO_PARSER_HINT])
            return parser.extract(content)
        except Exception as e:
            logger.error(f"Parser service error: {e}", exc_info=True)
            return ExtractionResult.error([f"Parser service error: {e}"])

    def parse_for_transactions(self, content: str) -> ParsingResult:
        """Registry-only extraction flattened to ParsedTransactions."""
        result = self.parse_bank_statement(content)
        if not result.success or result.data is None:
            return ParsingResult.failure(result.errors, result.warnings)

        transactions, warnings = flatten_statement(result.data)
        warnings = list(result.warnings) + warnings
        bank_name = result.data.metadata.bank_name
        if not transactions:
            return ParsingResult.failure([NO_TRANSACTIONS_ERROR], warnings,
                                         method='registry', bank_name=bank_name)
        return ParsingResult.from_transactions(transactions, warnings=warnings,
                                               method='registry', bank_name=bank_name)

    def is_bank_supported(self, content: str) -> bool:
        return self.registry.detect(content) is not None

    def get_supported_banks(self) -> List[str]:
        return self.registry.get_supported_banks()

    def get_parser_info(self, bank_name: str) -> Optional[Dict[str, Any]]:
        """Description of a registered parser, or None when the bank is unknown."""
        parser = self.registry.get_parser_by_bank_name(bank_name)
        if parser is None:
            return None
        return {
            'bank_name': parser.bank_name,
            'supported_formats': list(parser.supported_formats),
            'is_available': True,
        }
