"""
Unit tests for shared logging processors and metrics collector.
"""

import logging

import httpx
import pytest
import structlog
from prometheus_client import CollectorRegistry

from shared import logging as store_logging
from shared.metrics import MetricsCollector, get_metrics_collector
from shared.test_helpers import RecordingHandler, create_token_response
from service_store_auth.app.tokens import ServiceCredentialIssuer, audiences
from service_store_auth.app.transport import HttpTransport


class TestLoggingProcessors:
    """structlog processors."""

    def teardown_method(self):
        store_logging.clear_context()

    def test_correlation_context(self):
        store_logging.set_credential_context("contoso", "store-client")

        event = store_logging.add_correlation_context(None, "info", {"event": "x"})

        assert event["tenant_id"] == "contoso"
        assert event["client_id"] == "store-client"

    def test_correlation_context_empty(self):
        event = store_logging.add_correlation_context(None, "info", {"event": "x"})

        assert "tenant_id" not in event
        assert "client_id" not in event

    def test_correlation_context_keeps_explicit_values(self):
        store_logging.set_credential_context("contoso", "store-client")

        event = store_logging.add_correlation_context(None, "info", {"event": "x", "tenant_id": "fabrikam"})

        assert event["tenant_id"] == "fabrikam"
        assert event["client_id"] == "store-client"

    def test_clear_context(self):
        store_logging.set_credential_context("contoso", "store-client")
        store_logging.clear_context()

        assert store_logging.tenant_id_var.get() is None
        assert store_logging.client_id_var.get() is None

    def test_trace_context_without_span(self):
        event = store_logging.add_trace_context(None, "info", {"event": "x"})

        assert "trace_id" not in event

    def test_configured_timestamp_is_iso(self):
        store_logging.configure_logging("store_auth_test")
        try:
            processors = structlog.get_config()["processors"]
            event = {"event": "x"}
            for processor in processors[:-1]:
                if processor is structlog.stdlib.filter_by_level:
                    continue
                event = processor(logging.getLogger("store_auth.tests"), "info", event)
        finally:
            structlog.reset_defaults()
            structlog.contextvars.clear_contextvars()

        assert isinstance(event["timestamp"], str)
        assert event["timestamp"].endswith("Z")
        assert event["service"] == "store_auth_test"

    def test_get_logger(self):
        assert store_logging.get_logger("store_auth.tests") is not None


class TestMetricsCollector:
    """Prometheus metrics."""

    def test_collectors_do_not_clash(self):
        first = get_metrics_collector()
        second = get_metrics_collector()

        assert first.get_metric("token_requests_total") is not second.get_metric("token_requests_total")

    def test_counts_into_registry(self):
        registry = CollectorRegistry()
        collector = MetricsCollector(registry)

        collector.increment_counter("token_requests_total", audience="https://onestore.microsoft.com", status="success")
        collector.increment_counter("token_requests_total", audience="https://onestore.microsoft.com", status="success")

        value = registry.get_sample_value(
            "token_requests_total",
            {"audience": "https://onestore.microsoft.com", "status": "success"}
        )
        assert value == 2.0

    def test_time_operation(self):
        registry = CollectorRegistry()
        collector = MetricsCollector(registry)

        with collector.time_operation("store_id_refresh_duration_seconds", key_type="purchase_identity"):
            pass

        count = registry.get_sample_value(
            "store_id_refresh_duration_seconds_count",
            {"key_type": "purchase_identity"}
        )
        assert count == 1.0

    def test_default_collector_is_unregistered(self):
        assert get_metrics_collector().registry is None

    @pytest.mark.asyncio
    async def test_injected_collector_is_visible_in_registry(self):
        registry = CollectorRegistry()
        handler = RecordingHandler([httpx.Response(200, json=create_token_response())])
        issuer = ServiceCredentialIssuer(
            "tenant", "client", "secret",
            transport=HttpTransport(client=handler.client()),
            metrics=get_metrics_collector(registry=registry),
        )

        await issuer.issue_service()

        value = registry.get_sample_value(
            "token_requests_total",
            {"audience": audiences.SERVICE, "status": "success"}
        )
        assert value == 1.0

    def test_unknown_metric_is_ignored(self):
        collector = get_metrics_collector()

        collector.increment_counter("does_not_exist", status="x")

        assert collector.get_metric("does_not_exist") is None
