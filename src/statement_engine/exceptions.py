"""
Failure taxonomy for statement extraction.

These are raised internally and converted into result objects at the public
boundaries (bank parser, AI adapter, pipeline); callers never see them raised.
"""
from typing import Optional


class StatementParsingError(Exception):
    """
    Base class for every extraction failure.

    Carries optional context that is folded into the message:
    - The filename being processed
    - The bank the content was attributed to
    - A short sample of the offending text
    """

    def __init__(self, message: str, filename: Optional[str] = None,
                 bank_name: Optional[str] = None, sample_text: Optional[str] = None):
        self.message = message
        self.filename = filename
        self.bank_name = bank_name
        self.sample_text = sample_text

        details = []
        if filename:
            details.append(f"File: {filename}")
        if bank_name:
            details.append(f"Bank: {bank_name}")
        if sample_text:
            details.append(f"Sample: {sample_text[:200]}...")

        full_message = f"{message}\n" + "\n".join(details) if details else message
        super().__init__(full_message)


class DetectionFailure(StatementParsingError):
    """No registered detector and no generic strategy recognised the content."""


class ExtractionFailure(StatementParsingError):
    """A detector matched but the extractor found nothing usable."""


class ServiceFailure(StatementParsingError):
    """The AI provider failed (transport, auth, timeout or unparseable reply)."""


class ValidationFailure(StatementParsingError):
    """A single candidate transaction failed field validation."""
