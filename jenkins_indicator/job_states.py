"""Static table of Jenkins color tokens.

Every token the server can emit maps to a ``JobState`` with a rank (lower is
more severe) and an icon.  ``_anime`` tokens mark a build in progress and
share the rank of their base color.  Tokens not in the table resolve to an
unranked state so a plugin introducing a new color never breaks aggregation.
"""
from __future__ import annotations

from typing import Dict

from .models.job import JobState

RUNNING_SUFFIX = "_anime"

DEFAULT_COLOR = "blue"
ERROR_COLOR = "red"
NEUTRAL_COLOR = "grey"

UNKNOWN_ICON = "jenkins_unknown"

# color -> (rank, icon, green balls icon, label, visibility setting)
_BASE_STATES = {
    "red": (0, "jenkins_red", None, "Failed", "show_failed_jobs"),
    "yellow": (1, "jenkins_yellow", None, "Unstable", "show_unstable_jobs"),
    "blue": (2, "jenkins_blue", "jenkins_green", "Success", "show_successful_jobs"),
    "grey": (3, "jenkins_grey", None, "Pending", "show_neverbuilt_jobs"),
    "aborted": (4, "jenkins_grey", None, "Aborted", "show_aborted_jobs"),
    "notbuilt": (5, "jenkins_grey", None, "Not built", "show_neverbuilt_jobs"),
    "disabled": (6, "jenkins_grey", None, "Disabled", "show_disabled_jobs"),
}


def _build_table() -> Dict[str, JobState]:
    table: Dict[str, JobState] = {}
    for color, (rank, icon, green_icon, label, setting) in _BASE_STATES.items():
        table[color] = JobState(
            color=color,
            rank=rank,
            icon=icon,
            green_balls_icon=green_icon,
            label=label,
            visibility_setting=setting,
        )
        table[color + RUNNING_SUFFIX] = JobState(
            color=color + RUNNING_SUFFIX,
            rank=rank,
            icon=icon,
            green_balls_icon=green_icon,
            label=f"{label} (building)",
            running=True,
            visibility_setting=setting,
        )
    return table


JOB_STATES: Dict[str, JobState] = _build_table()


def get_state(color: str) -> JobState:
    """Return the state for ``color``; unknown tokens get an unranked state."""
    state = JOB_STATES.get(color)
    if state is not None:
        return state
    return JobState(
        color=color,
        rank=-1,
        icon=UNKNOWN_ICON,
        label="Unknown",
        running=color.endswith(RUNNING_SUFFIX),
    )


def rank(color: str) -> int:
    return get_state(color).rank


def icon(color: str, green_balls: bool = False) -> str:
    return get_state(color).icon_for(green_balls)


def is_running(color: str) -> bool:
    return get_state(color).running


def is_successful(color: str) -> bool:
    return get_state(color).visibility_setting == "show_successful_jobs"


def default_state() -> JobState:
    """All-clear state the aggregate starts from."""
    return JOB_STATES[DEFAULT_COLOR]


def error_state() -> JobState:
    return JOB_STATES[ERROR_COLOR]


def neutral_state() -> JobState:
    """Shown when every job was hidden by the state filters."""
    return JOB_STATES[NEUTRAL_COLOR]
