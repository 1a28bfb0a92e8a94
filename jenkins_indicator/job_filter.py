"""Reduce the raw job list to the set shown to the user.

Filtering runs in two stages, name rules first and state rules second, and
keeps the server's ordering.  The stages are exposed separately so the poller
can tell whether the state rules alone emptied the list.
"""
from __future__ import annotations

import re
from typing import List, Sequence

from . import job_states
from .models.job import Job
from .models.settings import IndicatorSettings


def filter_by_name(jobs: Sequence[Job], settings: IndicatorSettings) -> List[Job]:
    """Apply ``jobs_to_show`` then ``exclude_patterns``."""
    names = settings.job_names
    patterns = [re.compile(p) for p in settings.exclude_patterns]
    kept: List[Job] = []
    for job in jobs:
        if names is not None and job.name not in names:
            continue
        if any(p.search(job.name) for p in patterns):
            continue
        kept.append(job)
    return kept


def is_visible(job: Job, settings: IndicatorSettings) -> bool:
    state = job_states.get_state(job.color)
    if state.running and not settings.show_running_jobs:
        return False
    if state.visibility_setting is None:
        # unknown colors are always shown
        return True
    return bool(getattr(settings, state.visibility_setting))


def filter_by_state(jobs: Sequence[Job], settings: IndicatorSettings) -> List[Job]:
    return [job for job in jobs if is_visible(job, settings)]


def filter_jobs(jobs: Sequence[Job], settings: IndicatorSettings) -> List[Job]:
    return filter_by_state(filter_by_name(jobs, settings), settings)
