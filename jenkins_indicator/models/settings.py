"""Indicator settings snapshot.

Settings are owned by the settings source and handed to the poller as a
whole.  The model is frozen: a new snapshot is built for every change
(``model_copy(update=...)``), so a poll cycle that already read the old
snapshot finishes against a consistent view.
"""
from __future__ import annotations

import re
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IndicatorSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Server
    jenkins_url: str = ""
    autorefresh: bool = True
    autorefresh_interval: int = Field(default=5, gt=0, description="Seconds between polls")
    request_timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")

    # Preemptive basic auth
    use_authentication: bool = False
    auth_user: str = ""
    api_token: str = ""

    # Presentation hint passed through to the icon lookup
    green_balls_plugin: bool = False

    # Job filters
    show_running_jobs: bool = True
    show_successful_jobs: bool = True
    show_unstable_jobs: bool = True
    show_failed_jobs: bool = True
    show_neverbuilt_jobs: bool = True
    show_aborted_jobs: bool = True
    show_disabled_jobs: bool = True
    jobs_to_show: str = "all"
    exclude_patterns: List[str] = Field(default_factory=list)

    @field_validator("jenkins_url")
    @classmethod
    def _strip_url(cls, value: str) -> str:
        return value.strip()

    @field_validator("exclude_patterns")
    @classmethod
    def _patterns_compile(cls, value: List[str]) -> List[str]:
        for pattern in value:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid exclude pattern {pattern!r}: {exc}") from exc
        return value

    @property
    def auth(self) -> tuple[str, str] | None:
        """Credential pair for the fetcher, or None when auth is disabled."""
        if not self.use_authentication:
            return None
        return (self.auth_user, self.api_token)

    @property
    def job_names(self) -> set[str] | None:
        """Names from ``jobs_to_show``, or None when every job is shown."""
        raw = self.jobs_to_show.strip()
        if not raw or raw.lower() == "all":
            return None
        return {name.strip() for name in raw.split(",") if name.strip()}
