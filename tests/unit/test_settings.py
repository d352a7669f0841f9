"""Unit tests for configuration and observability helpers."""

import pytest
import structlog
from pydantic import ValidationError

from aide.infrastructure.config.settings import AideSettings, get_settings
from aide.infrastructure.observability.logging import MetricsCollector, add_service_context


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:
    """Environment-driven settings"""

    def test_defaults(self, monkeypatch):
        for name in ("AIDE_MAX_REVISIONS", "AIDE_RELEVANCE_FLOOR", "AIDE_LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        settings = AideSettings(_env_file=None)

        assert settings.embedding_dimensions == 384
        assert settings.relevance_floor == 0.3
        assert settings.retrieval_limit == 10
        assert settings.context_limit == 5
        assert settings.statistics_size == 5
        assert settings.stage_timeout_seconds == 60.0
        assert settings.max_revisions == 0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("AIDE_MAX_REVISIONS", "2")
        monkeypatch.setenv("AIDE_RELEVANCE_FLOOR", "0.5")
        monkeypatch.setenv("AIDE_LOG_FORMAT", "console")

        settings = get_settings()

        assert settings.max_revisions == 2
        assert settings.relevance_floor == 0.5
        assert settings.log_format == "console"

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()

    def test_invalid_values_are_rejected(self):
        with pytest.raises(ValidationError):
            AideSettings(_env_file=None, max_revisions=-1)
        with pytest.raises(ValidationError):
            AideSettings(_env_file=None, stage_timeout_seconds=0)


class TestServiceContext:
    """Log processor copying run context"""

    def test_adds_bound_run_context(self):
        with structlog.contextvars.bound_contextvars(run_id="run-1", project_id=42):
            event = add_service_context(None, "info", {"event": "x"})

        assert event["run_id"] == "run-1"
        assert event["project_id"] == 42
        assert "timestamp" in event

    def test_explicit_values_win(self):
        with structlog.contextvars.bound_contextvars(project_id=42):
            event = add_service_context(None, "info", {"event": "x", "project_id": 7})

        assert event["project_id"] == 7


class TestMetricsCollector:
    """In-process metrics"""

    def test_latency_summary(self):
        collector = MetricsCollector()
        collector.record_latency("stage", 10.0)
        collector.record_latency("stage", 30.0)

        summary = collector.get_metrics_summary()["latency.stage"]

        assert summary == {"count": 2, "avg": 20.0, "min": 10.0, "max": 30.0}

    def test_counters(self):
        collector = MetricsCollector()
        collector.increment_counter("runs")
        collector.increment_counter("runs", 2)

        assert collector.get_metrics_summary()["runs"] == 3

    def test_tags_are_part_of_the_key(self):
        collector = MetricsCollector()
        collector.increment_counter("runs", tags={"final_stage": "done"})
        collector.increment_counter("runs", tags={"final_stage": "aborted"})
        collector.increment_counter("runs", tags={"final_stage": "done"})

        summary = collector.get_metrics_summary()

        assert summary["runs{final_stage=done}"] == 2
        assert summary["runs{final_stage=aborted}"] == 1

    def test_reset(self):
        collector = MetricsCollector()
        collector.increment_counter("runs")
        collector.reset()

        assert collector.get_metrics_summary() == {}
