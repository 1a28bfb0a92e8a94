from .job import Job, JobState
from .settings import IndicatorSettings
from .result import (
    ConfigError,
    DecodeError,
    DisplaySet,
    Failure,
    FailureKind,
    PollResult,
    TransportError,
    TransportKind,
)

__all__ = [
    "Job",
    "JobState",
    "IndicatorSettings",
    "ConfigError",
    "DecodeError",
    "DisplaySet",
    "Failure",
    "FailureKind",
    "PollResult",
    "TransportError",
    "TransportKind",
]
