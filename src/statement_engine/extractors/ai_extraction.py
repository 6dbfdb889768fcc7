"""
AI-assisted Transaction Extraction

Uses Google Gemini to read a statement and return its transactions as JSON.
The provider is treated as untrusted: every item is validated before it
becomes a ParsedTransaction, and any provider failure (transport, auth,
timeout, unparseable reply) is turned into a result with
`fallback_used=True` so the pipeline can move on to local strategies.
"""
import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union

import google.generativeai as genai
from pydantic import BaseModel, ConfigDict, StrictFloat, StrictInt, ValidationError, field_validator

from src.common.logging_config import get_logger
from src.common.models import CREDIT, DEBIT, ParsedTransaction, UNCATEGORIZED
from src.common.settings import DEFAULT_AI_MODEL, EngineSettings
from ..coercers import new_transaction_id, parse_date
from ..exceptions import ServiceFailure, ValidationFailure

logger = get_logger(__name__)

AI_ACCOUNT = 'ai_parsed_statement'

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")


class AITransactionItem(BaseModel):
    """One transaction as returned by the AI provider."""
    model_config = ConfigDict(extra='ignore', coerce_numbers_to_str=True)

    date: str
    description: str
    amount: Union[StrictInt, StrictFloat]
    type: Optional[str] = None
    category: Optional[str] = None
    merchant: Optional[str] = None
    reference: Optional[str] = None

    @field_validator('date', 'description')
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


@dataclass
class AIExtractionResult:
    success: bool
    transactions: List[ParsedTransaction] = field(default_factory=list)
    error: Optional[str] = None
    fallback_used: bool = False
    warnings: List[str] = field(default_factory=list)


def parse_ai_response(raw_text: str, filename: Optional[str] = None) -> List[Any]:
    """
    Pull the JSON array out of a model reply.

    Raises:
        ServiceFailure: no array in the reply, or the array is not valid JSON
    """
    clean_text = (raw_text or '').replace("```json", "").replace("```", "").strip()
    match = _JSON_ARRAY.search(clean_text)
    if not match:
        raise ServiceFailure("AI response did not contain a JSON array", filename=filename,
                             sample_text=clean_text)
    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ServiceFailure(f"AI response is not valid JSON: {e}", filename=filename,
                             sample_text=clean_text) from e
    if not isinstance(items, list):
        raise ServiceFailure("AI response JSON is not an array", filename=filename)
    return items


class GeminiExtractionClient:
    """
    Transaction extraction using Google Gemini.

    Sends the statement text with a fixed instruction prompt and returns the
    raw (unvalidated) items of the JSON array in the reply.
    """

    def __init__(self, api_key: str, model_name: str = DEFAULT_AI_MODEL, prompt_char_limit: int = 12000):
        """
        Initialize client with API key.

        Args:
            api_key: Google Gemini API key
            model_name: Gemini model name
            prompt_char_limit: Statement text beyond this size is not sent
        """
        if not api_key:
            raise ValueError("API Key is required for Gemini extraction")

        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name)
        self.model_name = model_name
        self.prompt_char_limit = prompt_char_limit

    def build_prompt(self, content: str, filename: str) -> str:
        return f"""
        You are an expert in parsing bank statements.
        Extract every financial transaction from the content of "{filename}" below.

        Content:
        ---
        {content[:self.prompt_char_limit]}
        ---

        Requirements:
        1. One item per transaction; skip headers, opening/closing balance lines and totals.
        2. "date": the transaction date exactly as printed, or as YYYY-MM-DD.
        3. "amount": a positive number, without currency symbols or separators.
        4. "type": "credit" for money in, "debit" for money out.
        5. "category": a short spending category, if obvious.

        Return strictly a JSON array (no markdown, no commentary) like:
        [
            {{
                "date": "2024-01-15",
                "description": "Salary Deposit",
                "amount": 5000.00,
                "type": "credit",
                "category": "Income",
                "merchant": "Company Name",
                "reference": "REF123"
            }}
        ]
        """

    async def extract_transactions(self, content: str, filename: str) -> List[Any]:
        """
        Ask Gemini for the statement's transactions.

        Raises:
            ServiceFailure: request failed or the reply could not be parsed
        """
        prompt = self.build_prompt(content, filename)
        try:
            response = await self.model.generate_content_async(prompt)
            raw_text = response.text
        except Exception as e:
            raise ServiceFailure(f"Gemini request failed: {e}", filename=filename) from e

        items = parse_ai_response(raw_text, filename)
        logger.info("Gemini returned candidate transactions", model=self.model_name, item_count=len(items))
        return items


class AIExtractionAdapter:
    """
    Validation boundary around an AI extraction client.

    `extract` never raises: provider errors and timeouts come back as
    `AIExtractionResult(success=False, fallback_used=True)`.
    """

    def __init__(self, client, timeout_seconds: float = 30.0):
        """
        Args:
            client: Object with `async extract_transactions(content, filename) -> list`
            timeout_seconds: Upper bound for a single extraction call
        """
        self.client = client
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: EngineSettings) -> Optional["AIExtractionAdapter"]:
        """Gemini-backed adapter, or None when AI is disabled or no API key is configured."""
        if not settings.ai_enabled:
            return None
        if not settings.ai_api_key:
            logger.info("GEMINI_API_KEY not configured; AI extraction unavailable")
            return None
        client = GeminiExtractionClient(settings.ai_api_key, settings.ai_model, settings.ai_prompt_char_limit)
        return cls(client, settings.ai_timeout_seconds)

    async def extract(self, content: str, filename: str = 'bank_statement.csv') -> AIExtractionResult:
        try:
            items = await asyncio.wait_for(
                self.client.extract_transactions(content, filename),
                timeout=self.timeout_seconds
            )
            transactions, warnings = self.validate_items(items)
        except asyncio.TimeoutError:
            message = f"AI extraction timed out after {self.timeout_seconds:g}s"
            logger.warning(message, filename=filename)
            return AIExtractionResult(success=False, error=message, fallback_used=True)
        except ServiceFailure as e:
            logger.warning(f"AI extraction failed: {e.message}", filename=filename)
            return AIExtractionResult(success=False, error=e.message, fallback_used=True)
        except Exception as e:
            logger.error(f"Unexpected AI extraction error: {e}", filename=filename, exc_info=True)
            return AIExtractionResult(success=False, error=f"AI extraction error: {e}", fallback_used=True)

        if not transactions:
            return AIExtractionResult(
                success=False,
                error="AI extraction returned no valid transactions",
                fallback_used=True,
                warnings=warnings
            )

        logger.info("AI extraction succeeded", tx_count=len(transactions), rejected=len(warnings))
        return AIExtractionResult(success=True, transactions=transactions, warnings=warnings)

    def validate_items(self, items: List[Any]) -> Tuple[List[ParsedTransaction], List[str]]:
        """
        Turn raw AI items into ParsedTransactions.

        Items missing a date, a description or a numeric amount, with a zero
        amount, or with an unparseable date are dropped with a warning.
        """
        transactions = []
        warnings = []

        def reject(message: str) -> None:
            failure = ValidationFailure(message)
            warnings.append(failure.message)
            logger.warning(failure.message)

        for index, raw in enumerate(items):
            try:
                item = AITransactionItem.model_validate(raw)
            except ValidationError as e:
                fields = sorted({str(err['loc'][0]) for err in e.errors() if err.get('loc')})
                reject(f"AI item {index} rejected: invalid or missing {', '.join(fields) or 'fields'}")
                continue

            amount = abs(float(item.amount))
            if amount == 0:
                reject(f"AI item {index} rejected: non-positive amount")
                continue

            date = parse_date(item.date)
            if date is None:
                reject(f"AI item {index} rejected: unparseable date '{item.date}'")
                continue

            transactions.append(ParsedTransaction(
                id=new_transaction_id('ai'),
                date=date,
                description=item.description,
                amount=amount,
                type=CREDIT if (item.type or '').strip().lower() == CREDIT else DEBIT,
                category=item.category.strip() if item.category and item.category.strip() else UNCATEGORIZED,
                account=AI_ACCOUNT,
                merchant=item.merchant or None,
                reference=item.reference or None,
            ))

        return transactions, warnings
