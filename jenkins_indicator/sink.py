"""Presentation-side interface the poller reports to."""
from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence

from .models.job import Job, JobState

log = logging.getLogger(__name__)


class PresentationSink(Protocol):
    """Renders the indicator icon and job list.

    Both methods may be called zero or many times per refresh interval, from
    the poll completion context.
    """

    def on_display(
        self,
        jobs: Sequence[Job],
        aggregate_state: JobState,
        message: Optional[str] = None,
    ) -> None:
        ...

    def on_error(self, message: str, aggregate_state: JobState) -> None:
        ...


class LoggingSink:
    """Sink for the console runner: writes each result to the log."""

    def __init__(self, green_balls: bool = False) -> None:
        self.green_balls = green_balls

    def on_display(
        self,
        jobs: Sequence[Job],
        aggregate_state: JobState,
        message: Optional[str] = None,
    ) -> None:
        log.info(
            "indicator_display state=%s icon=%s jobs=%s message=%s",
            aggregate_state.color,
            aggregate_state.icon_for(self.green_balls),
            len(jobs),
            message,
        )
        for job in jobs:
            log.info("indicator_job name=%s color=%s url=%s", job.name, job.color, job.url)

    def on_error(self, message: str, aggregate_state: JobState) -> None:
        log.warning(
            "indicator_error state=%s icon=%s message=%s",
            aggregate_state.color,
            aggregate_state.icon_for(self.green_balls),
            message,
        )
