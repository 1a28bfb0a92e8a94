"""Job and JobState models: one Jenkins job as reported by ``api/json``."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Job(BaseModel):
    """A single job entry from the server's ``jobs`` array.

    Jobs are replaced wholesale on every successful poll, never edited.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    color: str = Field(default="", description="Raw Jenkins color token, e.g. 'blue_anime'")
    url: str = ""


class JobState(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: str
    rank: int = Field(default=-1, description="Lower is more severe; -1 means unranked")
    icon: str
    green_balls_icon: Optional[str] = None
    label: str
    running: bool = False
    visibility_setting: Optional[str] = None

    @property
    def is_ranked(self) -> bool:
        return self.rank >= 0

    def icon_for(self, green_balls: bool = False) -> str:
        if green_balls and self.green_balls_icon:
            return self.green_balls_icon
        return self.icon
