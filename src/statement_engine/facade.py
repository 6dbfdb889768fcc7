"""
Statement Facade

Synchronous surface over the extraction pipeline for scripts and notebooks:
loads a file, runs the pipeline and hands back a DataFrame plus metadata.
"""
import asyncio
import os
from typing import Any, Dict, Optional, Tuple

import pandas as pd
import pdfplumber

from src.common.logging_config import get_logger
from src.common.models import ParsingOptions, ParsingResult
from src.common.settings import EngineSettings
from .pipeline import ExtractionPipeline

logger = get_logger(__name__)


class StatementFacade:
    """
    Facade returning (pd.DataFrame, dict) for a statement.

    Not usable from inside a running event loop; async callers should await
    `ExtractionPipeline.parse_statement` directly.
    """

    def __init__(self, pipeline: Optional[ExtractionPipeline] = None,
                 settings: Optional[EngineSettings] = None):
        self.pipeline = pipeline or ExtractionPipeline.from_settings(settings)

    def parse(self, content: str, file_type: str = 'csv',
              options: Optional[ParsingOptions] = None) -> Tuple[pd.DataFrame, Dict[str, Any]]:
        """
        Unified parse method.
        Returns: (pd.DataFrame, dict) -> (transactions, metadata)
        """
        result = asyncio.run(self.pipeline.parse_statement(content, file_type, options))
        df = result.to_dataframe()

        # Consumers group by calendar day
        if not df.empty:
            df['date'] = pd.to_datetime(df['date']).dt.date

        return df, self._metadata(result)

    def parse_file(self, file_path: str,
                   options: Optional[ParsingOptions] = None) -> Tuple[pd.DataFrame, Dict[str, Any]]:
        """Load a file from disk and parse it; the extension decides the file type."""
        file_type = os.path.splitext(file_path)[1].lstrip('.').lower()
        options = options or ParsingOptions(filename=os.path.basename(file_path))
        content = self.load_text(file_path)
        return self.parse(content, file_type, options)

    @staticmethod
    def load_text(file_path: str) -> str:
        """
        Read a statement as text.

        PDFs are read page by page with pdfplumber; anything else is read as
        UTF-8 text.
        """
        if file_path.lower().endswith('.pdf'):
            with pdfplumber.open(file_path) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            logger.info("PDF text loaded", file_path=file_path, pages=len(pages))
            return "\n".join(pages)

        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            return f.read()

    @staticmethod
    def _metadata(result: ParsingResult) -> Dict[str, Any]:
        return {
            'success': result.success,
            'method': result.method,
            'bank': result.bank_name,
            'transaction_count': len(result.transactions),
            'total_amount': result.total_amount,
            'start_date': result.date_range.start,
            'end_date': result.date_range.end,
            'errors': list(result.errors),
            'warnings': list(result.warnings),
        }
