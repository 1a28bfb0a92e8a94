"""Timer-driven poller for one Jenkins server.

The poller owns a repeating timer task, a request guard and the last known
job list.  Each cycle fetches ``api/json``, decodes it, filters the jobs and
reduces them to a single worst state, then reports to the presentation sink.

At most one cycle is in flight per poller.  The guard is a plain attribute:
the check and the set in ``request_refresh`` run without an ``await`` in
between, so no other coroutine can interleave on the event loop.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import List, Optional, Sequence, Tuple

from . import job_states
from .decoder import decode_jobs
from .integrations.jenkins_client import JenkinsClient, status_url
from .integrations.metrics import track_poll_cycle, track_poll_error, track_poll_skipped
from .job_filter import filter_by_name, filter_by_state
from .models.job import Job, JobState
from .models.result import (
    ConfigError,
    DecodeError,
    DisplaySet,
    Failure,
    FailureKind,
    PollResult,
    TransportError,
    TransportKind,
)
from .models.settings import IndicatorSettings
from .sink import PresentationSink

log = logging.getLogger(__name__)

NO_JOBS_MESSAGE = "No jobs found"
INVALID_URL_MESSAGE = "Invalid Jenkins CI Server web frontend URL"
HTTP_ERROR_MESSAGE = "({status_code}) Invalid Jenkins CI Server web frontend URL"
NETWORK_ERROR_MESSAGE = "Unable to reach Jenkins CI Server"
DECODE_ERROR_MESSAGE = "Empty or invalid response from server"
UNEXPECTED_ERROR_MESSAGE = "Unexpected error while polling"


def compute_aggregate(jobs: Sequence[Job]) -> JobState:
    """Reduce jobs to the most severe ranked state, starting from the default.

    Unranked colors never change the result.  On equal rank the first state
    seen in server order is kept.
    """
    overall = job_states.default_state()
    for job in jobs:
        state = job_states.get_state(job.color)
        if state.is_ranked and state.rank < overall.rank:
            overall = state
    return overall


def build_display(jobs: Sequence[Job], settings: IndicatorSettings) -> DisplaySet:
    named = filter_by_name(jobs, settings)
    shown = filter_by_state(named, settings)
    if not shown:
        # Jobs hidden only by the state rules (e.g. "hide successful jobs")
        # are not a failure; an empty server or name filter is.
        state = job_states.neutral_state() if named else job_states.error_state()
        return DisplaySet(jobs=[], aggregate_state=state, message=NO_JOBS_MESSAGE)
    return DisplaySet(jobs=shown, aggregate_state=compute_aggregate(shown))


def _failure(kind: FailureKind, message: str, status_code: Optional[int] = None) -> Failure:
    return Failure(
        kind=kind,
        message=message,
        status_code=status_code,
        aggregate_state=job_states.error_state(),
    )


class Poller:
    """Polls one Jenkins server and reports to a ``PresentationSink``.

    The first fetch happens on the first timer tick or on a manual
    ``request_refresh``; ``start`` itself never fetches.
    """

    def __init__(self, client: Optional[JenkinsClient] = None) -> None:
        self._client = client
        self._settings: Optional[IndicatorSettings] = None
        self._sink: Optional[PresentationSink] = None
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Optional[asyncio.Task] = None
        self._requesting: bool = False
        # bumped by stop(); cycles started under an older generation report nothing
        self._generation: int = 0
        self.jobs: List[Job] = []
        self.last_result: Optional[PollResult] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def settings(self) -> Optional[IndicatorSettings]:
        return self._settings

    @property
    def is_running(self) -> bool:
        return self._timer is not None

    @property
    def is_requesting(self) -> bool:
        return self._requesting

    async def start(self, settings: IndicatorSettings, sink: PresentationSink) -> None:
        if self.is_running:
            return
        self._settings = settings
        self._sink = sink
        self._arm_timer()
        log.info(
            "jenkins_poller_started url=%s interval_s=%s autorefresh=%s",
            settings.jenkins_url,
            settings.autorefresh_interval,
            settings.autorefresh,
        )

    async def stop(self) -> None:
        timer = self._timer
        self._timer = None
        # a cycle still in flight completes but has nobody to report to
        self._sink = None
        self._generation += 1
        if not timer:
            return
        timer.cancel()
        try:
            await timer
        except asyncio.CancelledError:
            pass
        log.info("jenkins_poller_stopped inflight=%s", self._requesting)

    def apply_settings(self, settings: IndicatorSettings) -> Optional[asyncio.Task]:
        """Install a new settings snapshot, re-arm the timer and refresh once.

        A cycle already running keeps the snapshot it started with.
        """
        self._settings = settings
        if not self.is_running:
            return None
        self._arm_timer()
        log.info(
            "jenkins_poller_settings_applied url=%s interval_s=%s autorefresh=%s",
            settings.jenkins_url,
            settings.autorefresh_interval,
            settings.autorefresh,
        )
        return self.request_refresh()

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    def _arm_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        interval = self._settings.autorefresh_interval
        self._timer = asyncio.create_task(self._run_forever(interval), name="jenkins-poller-timer")

    async def _run_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            self._tick()

    def _tick(self) -> None:
        settings = self._settings
        if settings is None or not settings.autorefresh:
            return
        self.request_refresh()

    # ------------------------------------------------------------------
    # Poll cycle
    # ------------------------------------------------------------------

    def request_refresh(self) -> Optional[asyncio.Task]:
        """Start one poll cycle unless one is already in flight.

        Returns the cycle's task, or None when the call was dropped.
        """
        if not self.is_running:
            log.debug("jenkins_poll_skip_not_running")
            return None
        if self._requesting:
            log.debug("jenkins_poll_skip_busy")
            track_poll_skipped(self._settings.jenkins_url)
            return None
        self._requesting = True
        self._inflight = asyncio.create_task(
            self._run_cycle(self._sink, self._generation), name="jenkins-poll-cycle"
        )
        return self._inflight

    async def _run_cycle(self, sink: PresentationSink, generation: int) -> PollResult:
        settings = self._settings
        started = time.perf_counter()
        raw_jobs: Optional[List[Job]] = None
        try:
            try:
                result, raw_jobs = await self._poll(settings)
            except Exception as exc:  # noqa: BLE001
                log.exception("jenkins_poll_cycle_failed: %s", exc)
                result = _failure(FailureKind.UNEXPECTED, UNEXPECTED_ERROR_MESSAGE)
            self._record(settings, result, raw_jobs, started)
            self._deliver(sink, generation, result, raw_jobs)
            return result
        finally:
            self._requesting = False
            self._inflight = None

    async def _poll(
        self, settings: IndicatorSettings
    ) -> Tuple[PollResult, Optional[List[Job]]]:
        url = status_url(settings.jenkins_url)
        if isinstance(url, ConfigError):
            log.warning("jenkins_poll_config_error url=%r reason=%s", url.url, url.reason)
            return _failure(FailureKind.CONFIG, INVALID_URL_MESSAGE), None

        client = self._client or JenkinsClient(timeout=settings.request_timeout)
        body = await client.fetch(url, auth=settings.auth)
        if isinstance(body, TransportError):
            if body.kind is TransportKind.HTTP:
                message = HTTP_ERROR_MESSAGE.format(status_code=body.status_code)
                return _failure(FailureKind.HTTP, message, body.status_code), None
            return _failure(FailureKind.NETWORK, NETWORK_ERROR_MESSAGE), None

        jobs = decode_jobs(body)
        if isinstance(jobs, DecodeError):
            log.warning("jenkins_poll_decode_error url=%s reason=%s", url, jobs.reason)
            return _failure(FailureKind.DECODE, DECODE_ERROR_MESSAGE), None

        return build_display(jobs, settings), jobs

    def _record(
        self,
        settings: IndicatorSettings,
        result: PollResult,
        raw_jobs: Optional[List[Job]],
        started: float,
    ) -> None:
        latency_ms = (time.perf_counter() - started) * 1000
        if isinstance(result, Failure):
            track_poll_error(settings.jenkins_url, result.kind.value, latency_ms)
            return
        track_poll_cycle(
            settings.jenkins_url,
            jobs_fetched=len(raw_jobs or []),
            jobs_displayed=len(result.jobs),
            latency_ms=latency_ms,
            aggregate=result.aggregate_state.color,
        )

    def _deliver(
        self,
        sink: PresentationSink,
        generation: int,
        result: PollResult,
        raw_jobs: Optional[List[Job]],
    ) -> None:
        if generation != self._generation:
            log.info("jenkins_poll_result_dropped reason=stopped")
            return
        if raw_jobs is not None:
            self.jobs = raw_jobs
        self.last_result = result
        try:
            if isinstance(result, Failure):
                sink.on_error(result.message, result.aggregate_state)
            else:
                sink.on_display(result.jobs, result.aggregate_state, result.message)
        except Exception as exc:  # noqa: BLE001
            log.exception("jenkins_sink_failed: %s", exc)
