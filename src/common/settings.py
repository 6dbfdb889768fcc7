"""
Engine Settings

Runtime configuration for the extraction engine, read from environment variables.
"""
import os
from dataclasses import dataclass
from typing import Optional

from src.common.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_AI_MODEL = 'gemini-2.5-flash'


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}, using default", value=raw, default=default)
        return default


@dataclass
class EngineSettings:
    """
    Configuration shared by every extraction call.

    Attributes:
        ai_enabled: Master switch for the AI attempt
        ai_timeout_seconds: Upper bound for a single AI attempt
        ai_model: Gemini model used by the default extraction client
        ai_api_key: Gemini API key; None leaves the AI capability unconfigured
        max_transaction_amount: Upper bound applied by amount validation
        header_scan_rows: How far the generic extractor looks for a header row
        ai_prompt_char_limit: Content sent to the AI provider is truncated to this size
    """
    ai_enabled: bool = True
    ai_timeout_seconds: float = 30.0
    ai_model: str = DEFAULT_AI_MODEL
    ai_api_key: Optional[str] = None
    max_transaction_amount: float = 1_000_000.0
    header_scan_rows: int = 15
    ai_prompt_char_limit: int = 12000

    @classmethod
    def from_env(cls) -> "EngineSettings":
        """Build settings from the process environment."""
        return cls(
            ai_enabled=_env_bool('STATEMENT_AI_ENABLED', True),
            ai_timeout_seconds=_env_float('STATEMENT_AI_TIMEOUT', 30.0),
            ai_model=os.getenv('STATEMENT_AI_MODEL') or DEFAULT_AI_MODEL,
            ai_api_key=os.getenv('GEMINI_API_KEY') or None,
            max_transaction_amount=_env_float('STATEMENT_MAX_AMOUNT', 1_000_000.0),
        )
