"""
Shared fixtures for the docform test suite.

- Structured logging is configured once for the run (into a discarded
  buffer) so every code path exercises StructuredFormatter.
- ``captured_logs`` collects docform records as parsed JSON dicts.
- ``config``, ``scheduler`` and ``make_session`` build documents with the
  bundled configuration and a deterministic clock.
"""

import json
import logging
from io import StringIO

import pytest

from docform_config import get_active_config
from docform_kernel.domain.scheduler import ManualScheduler
from docform_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from docform_services.document import DocumentSession


class _JSONCollector(logging.Handler):
    """Formats each record with StructuredFormatter and keeps the parsed dict."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.setFormatter(StructuredFormatter())
        self.records: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(json.loads(self.format(record)))


@pytest.fixture(autouse=True, scope="session")
def _structured_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _isolated_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Collect docform log records at DEBUG and above.

        def test_x(captured_logs):
            ...
            assert any(r["message"] == "recompute_completed" for r in captured_logs())
    """
    collector = _JSONCollector()
    docform_logger = logging.getLogger("docform")
    saved_level = docform_logger.level
    docform_logger.addHandler(collector)
    docform_logger.setLevel(logging.DEBUG)
    try:
        yield lambda: list(collector.records)
    finally:
        docform_logger.removeHandler(collector)
        docform_logger.setLevel(saved_level)


@pytest.fixture(scope="session")
def config():
    return get_active_config()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def make_session(config):
    """Factory: ``make_session("bill", document_id="B-1")``."""

    def _make(document_type: str = "invoice", **kwargs) -> DocumentSession:
        return DocumentSession(document_type, config=config, **kwargs)

    return _make
