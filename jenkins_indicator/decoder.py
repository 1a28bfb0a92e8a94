"""Decode the ``api/json`` payload into jobs.

Failures come back as a ``DecodeError`` value; nothing here raises.
"""
from __future__ import annotations

import json
from typing import List, Union

import structlog
from pydantic import ValidationError

from .models.job import Job
from .models.result import DecodeError

log = structlog.get_logger(__name__)


def decode_jobs(payload: bytes) -> Union[List[Job], DecodeError]:
    if not payload or not payload.strip():
        return DecodeError(reason="empty response")

    try:
        data = json.loads(payload)
    except (ValueError, RecursionError) as exc:
        log.debug("jenkins_payload_not_json", error=str(exc))
        return DecodeError(reason=f"invalid JSON: {exc}")

    if not isinstance(data, dict):
        return DecodeError(reason=f"expected a JSON object, got {type(data).__name__}")

    raw_jobs = data.get("jobs")
    if not isinstance(raw_jobs, list):
        return DecodeError(reason="missing 'jobs' array")

    try:
        return [Job.model_validate(item) for item in raw_jobs]
    except ValidationError as exc:
        log.debug("jenkins_job_invalid", error=str(exc))
        return DecodeError(reason=f"invalid job entry: {exc.errors()[0].get('msg', 'invalid')}")
