"""
Jenkins indicator - Application Configuration
Loads environment variables from .env and exposes them as typed settings.

Process-level values live on ``Settings``.  The per-server indicator settings
are rebuilt on demand by ``load_indicator_settings`` so a changed settings file
can be picked up without restarting.
"""
import os
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

from dotenv import dotenv_values, load_dotenv

from jenkins_indicator.models.settings import IndicatorSettings

# Load .env from the working directory (does not override real env vars)
_ENV_PATH = Path(os.getenv("JENKINS_ENV_FILE", ".env"))
load_dotenv(_ENV_PATH)

_TRUE = {"1", "true", "yes", "on"}

# env var -> IndicatorSettings field
ENV_FIELDS: Dict[str, str] = {
    "JENKINS_URL": "jenkins_url",
    "JENKINS_AUTOREFRESH": "autorefresh",
    "JENKINS_AUTOREFRESH_INTERVAL": "autorefresh_interval",
    "JENKINS_REQUEST_TIMEOUT": "request_timeout",
    "JENKINS_USE_AUTHENTICATION": "use_authentication",
    "JENKINS_AUTH_USER": "auth_user",
    "JENKINS_API_TOKEN": "api_token",
    "JENKINS_GREEN_BALLS_PLUGIN": "green_balls_plugin",
    "JENKINS_SHOW_RUNNING_JOBS": "show_running_jobs",
    "JENKINS_SHOW_SUCCESSFUL_JOBS": "show_successful_jobs",
    "JENKINS_SHOW_UNSTABLE_JOBS": "show_unstable_jobs",
    "JENKINS_SHOW_FAILED_JOBS": "show_failed_jobs",
    "JENKINS_SHOW_NEVERBUILT_JOBS": "show_neverbuilt_jobs",
    "JENKINS_SHOW_ABORTED_JOBS": "show_aborted_jobs",
    "JENKINS_SHOW_DISABLED_JOBS": "show_disabled_jobs",
    "JENKINS_JOBS_TO_SHOW": "jobs_to_show",
    "JENKINS_EXCLUDE_PATTERNS": "exclude_patterns",
}

_BOOL_FIELDS = {
    name
    for name, field in IndicatorSettings.model_fields.items()
    if field.annotation is bool
}
_STR_FIELDS = {
    name
    for name, field in IndicatorSettings.model_fields.items()
    if field.annotation is str
}


class Settings:
    # Application
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Settings hot reload: file watched by the console runner
    JENKINS_SETTINGS_FILE: str = os.getenv("JENKINS_SETTINGS_FILE", str(_ENV_PATH))
    SETTINGS_RELOAD_INTERVAL_S: float = float(os.getenv("SETTINGS_RELOAD_INTERVAL_S", "2"))

    # Datadog
    DD_API_KEY: str = os.getenv("DD_API_KEY", "")

    @property
    def datadog_configured(self) -> bool:
        """True when a real (non-placeholder) Datadog API key is set."""
        return self.DD_API_KEY not in {"", "your_datadog_api_key_here"}


settings = Settings()


def _coerce(field: str, raw: str) -> object:
    value = raw.strip()
    if field in _BOOL_FIELDS:
        return value.lower() in _TRUE
    if field == "exclude_patterns":
        return [p.strip() for p in value.split(",") if p.strip()]
    return value


def settings_from_mapping(values: Mapping[str, Optional[str]]) -> IndicatorSettings:
    """Build a snapshot from ``JENKINS_*`` keys; unknown keys are ignored.

    Raises ``pydantic.ValidationError`` when a value does not validate.
    """
    data = {}
    for env_name, field in ENV_FIELDS.items():
        raw = values.get(env_name)
        if raw is None or (not raw.strip() and field not in _STR_FIELDS):
            # blank numeric/bool entries fall back to the default
            continue
        data[field] = _coerce(field, raw)
    return IndicatorSettings.model_validate(data)


def load_indicator_settings(path: Union[str, Path, None] = None) -> IndicatorSettings:
    """Read indicator settings from the environment, overlaid with ``path``.

    Values in the file win over the process environment so that editing the
    file takes effect on the next reload.
    """
    values: Dict[str, Optional[str]] = {k: v for k, v in os.environ.items() if k in ENV_FIELDS}
    if path is not None and Path(path).is_file():
        values.update(dotenv_values(path))
    return settings_from_mapping(values)
