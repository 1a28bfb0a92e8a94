"""Poll cycle outcomes and the error values produced along the way.

Expected failures are returned as values rather than raised, so one bad
response can never escape a poll cycle.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .job import Job, JobState


class TransportKind(str, Enum):
    HTTP = "http"
    NETWORK = "network"


class FailureKind(str, Enum):
    HTTP = "http"
    NETWORK = "network"
    DECODE = "decode"
    CONFIG = "config"
    UNEXPECTED = "unexpected"


class TransportError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TransportKind
    status_code: Optional[int] = None
    reason: str = ""


class DecodeError(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: str


class ConfigError(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    reason: str = "invalid Jenkins URL"


class DisplaySet(BaseModel):
    """Filtered jobs in server order plus the single worst state."""

    model_config = ConfigDict(frozen=True)

    jobs: List[Job] = Field(default_factory=list)
    aggregate_state: JobState
    message: Optional[str] = None


class Failure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str
    aggregate_state: JobState
    status_code: Optional[int] = None


PollResult = Union[DisplaySet, Failure]
