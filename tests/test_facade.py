"""
Unit tests for StatementFacade

Tests cover:
- DataFrame and metadata output
- File loading (text and PDF)
- Option defaults for parse_file
"""
import pytest
from datetime import date
from unittest.mock import AsyncMock, Mock, patch

from src.common.models import ParsingOptions, ParsingResult
from src.common.settings import EngineSettings
from src.statement_engine.banks import default_registry
from src.statement_engine.facade import StatementFacade
from src.statement_engine.pipeline import EXHAUSTED_ERROR, ExtractionPipeline


@pytest.fixture
def facade():
    return StatementFacade(ExtractionPipeline(default_registry(), settings=EngineSettings(ai_enabled=False)))


class TestParse:

    def test_dataframe_and_metadata(self, facade, icici_full):
        df, metadata = facade.parse(icici_full)

        assert len(df) == 3
        assert df['date'].iloc[0] == date(2024, 1, 2)
        assert list(df['type']) == ['credit', 'debit', 'debit']
        assert metadata['success'] is True
        assert metadata['method'] == 'registry'
        assert metadata['bank'] == 'ICICI Bank'
        assert metadata['transaction_count'] == 3
        assert metadata['total_amount'] == 32000
        assert metadata['start_date'].day == 2
        assert metadata['end_date'].day == 4

    def test_failure(self, facade, no_tokens):
        df, metadata = facade.parse(no_tokens)

        assert df.empty
        assert 'amount' in df.columns
        assert metadata['success'] is False
        assert EXHAUSTED_ERROR in metadata['errors']

    def test_default_pipeline_without_ai_key(self):
        facade = StatementFacade(settings=EngineSettings(ai_api_key=None))
        assert facade.pipeline.ai_adapter is None


class TestFiles:

    def test_parse_file(self, facade, tmp_path, icici_minimal):
        path = tmp_path / "jan.csv"
        path.write_text(icici_minimal, encoding="utf-8")

        df, metadata = facade.parse_file(str(path))

        assert len(df) == 1
        assert metadata['bank'] == 'ICICI Bank'

    def test_parse_file_passes_type_and_name(self, tmp_path):
        pipeline = Mock(spec=ExtractionPipeline)
        pipeline.parse_statement = AsyncMock(return_value=ParsingResult.failure(["nothing"]))
        path = tmp_path / "Statement.PDF"

        with patch.object(StatementFacade, 'load_text', return_value="text") as load_text:
            StatementFacade(pipeline).parse_file(str(path))

        load_text.assert_called_once_with(str(path))
        pipeline.parse_statement.assert_awaited_once_with(
            "text", 'pdf', ParsingOptions(filename="Statement.PDF")
        )

    def test_load_text(self, tmp_path):
        path = tmp_path / "statement.txt"
        path.write_bytes("Date,Amount\n15/01/2024,10\n".encode("utf-8") + b"\xff")

        text = StatementFacade.load_text(str(path))

        assert text.startswith("Date,Amount")
        assert text.endswith("�")

    @patch('src.statement_engine.facade.pdfplumber')
    def test_load_pdf(self, mock_pdfplumber):
        pdf = mock_pdfplumber.open.return_value.__enter__.return_value
        pdf.pages = [Mock(extract_text=Mock(return_value="page one")),
                     Mock(extract_text=Mock(return_value=None))]

        assert StatementFacade.load_text("scan.pdf") == "page one\n"
        mock_pdfplumber.open.assert_called_once_with("scan.pdf")
