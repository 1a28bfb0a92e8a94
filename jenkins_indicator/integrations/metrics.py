"""Datadog custom metrics for the poll loop.

Sends StatsD metrics to the Datadog Agent.
Falls back to debug logging only when DD_API_KEY is not configured.

Metric catalogue
----------------
  jenkins.poll.latency_ms        histogram  full fetch-decode-filter cycle duration
  jenkins.poll.jobs_fetched      gauge      jobs returned by the server
  jenkins.poll.jobs_displayed    gauge      jobs left after filtering
  jenkins.poll.errors            increment  failed cycles (tagged by kind)
  jenkins.poll.skipped           increment  refresh requests dropped while busy
"""
from __future__ import annotations

import os
from typing import List, Optional

import structlog

from jenkins_indicator.config import settings

log = structlog.get_logger(__name__)

_dd_initialized = False


def _ensure_initialized() -> None:
    global _dd_initialized
    if _dd_initialized:
        return
    if not settings.datadog_configured:
        return
    try:
        from datadog import initialize

        initialize(
            api_key=settings.DD_API_KEY,
            statsd_host=os.getenv("DD_AGENT_HOST", "localhost"),
            statsd_port=int(os.getenv("DD_STATSD_PORT", "8125")),
        )
        _dd_initialized = True
        log.info("datadog_metrics_initialized")
    except Exception as exc:  # noqa: BLE001
        log.warning("datadog_init_failed", error=str(exc))


def _statsd():
    """Return the statsd client if configured, else None."""
    _ensure_initialized()
    if not _dd_initialized:
        return None
    from datadog import statsd

    return statsd


def _server_tags(server: str, extra: Optional[List[str]] = None) -> List[str]:
    tags = [f"server:{server or 'unset'}"]
    if extra:
        tags.extend(extra)
    return tags


def track_poll_cycle(
    server: str,
    jobs_fetched: int,
    jobs_displayed: int,
    latency_ms: float,
    aggregate: str,
) -> None:
    """Record one successful poll cycle."""
    sd = _statsd()
    if sd:
        tags = _server_tags(server, [f"aggregate:{aggregate}"])
        sd.gauge("jenkins.poll.jobs_fetched", jobs_fetched, tags=tags)
        sd.gauge("jenkins.poll.jobs_displayed", jobs_displayed, tags=tags)
        sd.histogram("jenkins.poll.latency_ms", latency_ms, tags=tags)
    log.debug(
        "metric.poll_cycle",
        server=server,
        jobs_fetched=jobs_fetched,
        jobs_displayed=jobs_displayed,
        latency_ms=round(latency_ms, 1),
        aggregate=aggregate,
    )


def track_poll_error(server: str, kind: str, latency_ms: float) -> None:
    sd = _statsd()
    if sd:
        tags = _server_tags(server, [f"kind:{kind}"])
        sd.increment("jenkins.poll.errors", tags=tags)
        sd.histogram("jenkins.poll.latency_ms", latency_ms, tags=tags)
    log.debug("metric.poll_error", server=server, kind=kind, latency_ms=round(latency_ms, 1))


def track_poll_skipped(server: str) -> None:
    sd = _statsd()
    if sd:
        sd.increment("jenkins.poll.skipped", tags=_server_tags(server))
