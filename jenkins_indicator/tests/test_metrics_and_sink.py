from __future__ import annotations

import logging
from unittest.mock import MagicMock, patch

from jenkins_indicator import job_states
from jenkins_indicator.integrations import metrics
from jenkins_indicator.integrations.logging_setup import _add_service_context
from jenkins_indicator.models import Job
from jenkins_indicator.sink import LoggingSink


def test_metrics_are_noop_without_datadog_key(monkeypatch):
    monkeypatch.setattr(metrics.settings, "DD_API_KEY", "")
    monkeypatch.setattr(metrics, "_dd_initialized", False)
    assert metrics._statsd() is None
    # must not raise
    metrics.track_poll_cycle("http://j", 3, 2, 12.5, "red")
    metrics.track_poll_error("http://j", "http", 4.0)
    metrics.track_poll_skipped("http://j")


def test_placeholder_datadog_key_counts_as_unconfigured(monkeypatch):
    monkeypatch.setattr(metrics.settings, "DD_API_KEY", "your_datadog_api_key_here")
    monkeypatch.setattr(metrics, "_dd_initialized", False)
    assert metrics.settings.datadog_configured is False
    assert metrics._statsd() is None


def test_poll_cycle_metrics_sent_to_statsd():
    statsd = MagicMock()
    with patch.object(metrics, "_statsd", return_value=statsd):
        metrics.track_poll_cycle("http://j", 3, 2, 12.5, "red")
        metrics.track_poll_error("http://j", "decode", 4.0)

    gauges = {c.args[0]: c.args[1] for c in statsd.gauge.call_args_list}
    assert gauges == {"jenkins.poll.jobs_fetched": 3, "jenkins.poll.jobs_displayed": 2}
    statsd.increment.assert_called_once_with(
        "jenkins.poll.errors", tags=["server:http://j", "kind:decode"]
    )
    assert statsd.histogram.call_count == 2


def test_service_context_defaults(monkeypatch):
    monkeypatch.delenv("DD_SERVICE", raising=False)
    event = _add_service_context(None, "info", {"event": "x"})
    assert event["service"] == "jenkins-indicator"
    assert "env" in event and "version" in event


def test_logging_sink_reports_display_and_error(caplog):
    sink = LoggingSink(green_balls=True)
    with caplog.at_level(logging.INFO, logger="jenkins_indicator.sink"):
        sink.on_display([Job(name="A", color="blue")], job_states.default_state())
        sink.on_error("(500) Invalid Jenkins CI Server web frontend URL", job_states.error_state())

    text = caplog.text
    assert "jenkins_green" in text
    assert "name=A" in text
    assert any(r.levelno == logging.WARNING and "500" in r.getMessage() for r in caplog.records)
