"""Unit tests for logging and tracing setup."""

import logging
import os
from collections.abc import Iterator
from unittest.mock import Mock, patch

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from pythonjsonlogger.json import JsonFormatter

from catalog_admin.models.catalog_models import EntityType
from catalog_admin.observability import configure_logging, setup_observability, traced


@pytest.fixture
def spans() -> Iterator[InMemorySpanExporter]:
    """Fixture recording spans of a tracer provider local to the test."""
    exporter = InMemorySpanExporter()
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    with patch("opentelemetry.trace.get_tracer", side_effect=provider.get_tracer):
        yield exporter


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class _Repository:
    entity_type = EntityType.OFFER

    @traced("catalog.create")
    async def create(self, fail: bool = False) -> str:
        if fail:
            raise ValueError("duplicate")
        return "created"

    @traced()
    def label(self) -> str:
        return "offer"


@pytest.mark.unit
class TestTraced:
    """Tests for the traced decorator."""

    @pytest.mark.asyncio
    async def test_async_span_tagged_with_entity_type(self, spans: InMemorySpanExporter) -> None:
        result = await _Repository().create()

        assert result == "created"
        (span,) = spans.get_finished_spans()
        assert span.name == "catalog.create"
        assert span.attributes["catalog.entity_type"] == "offers"
        assert span.attributes["success"] is True

    @pytest.mark.asyncio
    async def test_exception_recorded_and_reraised(self, spans: InMemorySpanExporter) -> None:
        with pytest.raises(ValueError):
            await _Repository().create(fail=True)

        (span,) = spans.get_finished_spans()
        assert span.attributes["success"] is False
        assert span.attributes["error.type"] == "ValueError"

    def test_sync_function_uses_qualified_name(self, spans: InMemorySpanExporter) -> None:
        assert _Repository().label() == "offer"

        (span,) = spans.get_finished_spans()
        assert span.name == "_Repository.label"


@pytest.mark.unit
class TestConfigureLogging:
    """Tests for configure_logging."""

    @patch.dict(os.environ, {}, clear=True)
    def test_installs_single_json_handler(self, restore_root_logger: None) -> None:
        logging.getLogger().addHandler(logging.NullHandler())

        configure_logging("DEBUG")

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, JsonFormatter)
        assert root.level == logging.DEBUG

    @patch.dict(os.environ, {"LOG_LEVEL": "warning"}, clear=True)
    def test_environment_level_wins(self, restore_root_logger: None) -> None:
        configure_logging("DEBUG")

        assert logging.getLogger().level == logging.WARNING


@pytest.mark.unit
class TestSetupObservability:
    @patch.dict(os.environ, {"ENVIRONMENT": "test"}, clear=True)
    @patch("catalog_admin.observability.config.instrument_store_clients")
    @patch("catalog_admin.observability.config.install_providers")
    def test_exporters_off_in_test_environment(
        self, mock_install: Mock, mock_instrument: Mock
    ) -> None:
        setup_observability(enable_exporters=True)

        resource, export = mock_install.call_args.args
        assert export is False
        assert resource.attributes["service.name"] == "catalog-admin"
        mock_instrument.assert_called_once_with()
