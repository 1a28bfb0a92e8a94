"""Structured logging configuration for the Jenkins indicator.

Sets up structlog with:
  - JSON rendering when running as a service
  - Pretty console rendering for local development
  - Standard fields: timestamp, level, service, env, version

Usage
-----
Call ``configure_logging()`` once at startup:

    from jenkins_indicator.integrations.logging_setup import configure_logging
    configure_logging()

All other modules then just use:

    import structlog
    log = structlog.get_logger(__name__)
    log.info("jenkins_fetch_ok", url="...", bytes=512)
"""
from __future__ import annotations

import logging
import os
import sys
from typing import Any, MutableMapping

import structlog


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def configure_logging(level: str | None = None, pretty: bool | None = None) -> None:
    """Configure structlog and route stdlib logging through the same handler.

    Args:
        level: Log level string (``"DEBUG"``, ``"INFO"``, etc.).
               Defaults to the ``LOG_LEVEL`` env var, or ``"INFO"``.
        pretty: Force console (True) or JSON (False) rendering.  Defaults to
                console rendering when ``ENVIRONMENT`` is a local one.
    """
    log_level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    if pretty is None:
        pretty = os.getenv("ENVIRONMENT", "development").lower() in ("development", "local", "test")

    _configure_stdlib_logging(log_level, pretty)

    structlog.configure(
        processors=_shared_processors() + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.get_logger(__name__).debug(
        "logging_configured",
        level=log_level_str,
        pretty=pretty,
    )


# ---------------------------------------------------------------------------
# Processor chains
# ---------------------------------------------------------------------------


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        _add_service_context,
        structlog.processors.StackInfoRenderer(),
    ]


def _renderer(pretty: bool) -> Any:
    if pretty:
        return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    return structlog.processors.JSONRenderer()


# ---------------------------------------------------------------------------
# Custom processors
# ---------------------------------------------------------------------------


def _add_service_context(
    logger: Any,
    method: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Inject unified service tagging fields into every log event."""
    event_dict.setdefault("service", os.getenv("DD_SERVICE", "jenkins-indicator"))
    event_dict.setdefault("env", os.getenv("DD_ENV", "development"))
    event_dict.setdefault("version", os.getenv("DD_VERSION", "0.1.0"))
    return event_dict


# ---------------------------------------------------------------------------
# stdlib logging setup
# ---------------------------------------------------------------------------


def _configure_stdlib_logging(level: int, pretty: bool) -> None:
    """Format stdlib records (the poller, httpx) with the structlog renderer."""
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_shared_processors(),
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta]
        + ([] if pretty else [structlog.processors.format_exc_info])
        + [_renderer(pretty)],
    )

    root = logging.getLogger()
    root.setLevel(level)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        root.addHandler(handler)
    for handler in root.handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    # Quieten noisy third-party loggers
    for noisy in ("httpx", "httpcore", "urllib3", "datadog"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
