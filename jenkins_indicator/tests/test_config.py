from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from jenkins_indicator.config import ENV_FIELDS, load_indicator_settings, settings_from_mapping
from jenkins_indicator.models import IndicatorSettings
from jenkins_indicator.settings_source import SettingsWatcher


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    # Jenkins agents export JENKINS_URL; keep the real environment out of these tests
    for name in ENV_FIELDS:
        monkeypatch.delenv(name, raising=False)


def _write(path: Path, text: str, mtime: float) -> None:
    path.write_text(text)
    os.utime(path, (mtime, mtime))


class TestSettingsFromMapping:
    def test_defaults(self):
        settings = settings_from_mapping({})
        assert settings == IndicatorSettings()
        assert settings.autorefresh_interval == 5
        assert settings.auth is None
        assert settings.job_names is None

    def test_parses_values(self):
        settings = settings_from_mapping(
            {
                "JENKINS_URL": " http://jenkins.local ",
                "JENKINS_AUTOREFRESH": "false",
                "JENKINS_AUTOREFRESH_INTERVAL": "30",
                "JENKINS_USE_AUTHENTICATION": "yes",
                "JENKINS_AUTH_USER": "bob",
                "JENKINS_API_TOKEN": "t0k3n",
                "JENKINS_SHOW_SUCCESSFUL_JOBS": "0",
                "JENKINS_EXCLUDE_PATTERNS": "^tmp-, -old$",
                "JENKINS_JOBS_TO_SHOW": "a,b",
                "UNRELATED": "x",
            }
        )
        assert settings.jenkins_url == "http://jenkins.local"
        assert settings.autorefresh is False
        assert settings.autorefresh_interval == 30
        assert settings.auth == ("bob", "t0k3n")
        assert settings.show_successful_jobs is False
        assert settings.exclude_patterns == ["^tmp-", "-old$"]
        assert settings.job_names == {"a", "b"}

    def test_blank_numeric_falls_back_to_default(self):
        settings = settings_from_mapping({"JENKINS_AUTOREFRESH_INTERVAL": ""})
        assert settings.autorefresh_interval == 5

    @pytest.mark.parametrize(
        "values",
        [
            {"JENKINS_AUTOREFRESH_INTERVAL": "0"},
            {"JENKINS_AUTOREFRESH_INTERVAL": "soon"},
            {"JENKINS_REQUEST_TIMEOUT": "-1"},
            {"JENKINS_EXCLUDE_PATTERNS": "(unclosed"},
        ],
    )
    def test_invalid_values_raise(self, values):
        with pytest.raises(ValidationError):
            settings_from_mapping(values)

    def test_snapshots_are_frozen(self):
        settings = IndicatorSettings()
        with pytest.raises(ValidationError):
            settings.autorefresh_interval = 10
        updated = settings.model_copy(update={"autorefresh_interval": 10})
        assert settings.autorefresh_interval == 5
        assert updated.autorefresh_interval == 10


class TestLoadIndicatorSettings:
    def test_file_overrides_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("JENKINS_URL", "http://from-env")
        monkeypatch.setenv("JENKINS_AUTOREFRESH_INTERVAL", "15")
        env_file = tmp_path / "indicator.env"
        env_file.write_text("JENKINS_URL=http://from-file\n")

        settings = load_indicator_settings(env_file)

        assert settings.jenkins_url == "http://from-file"
        assert settings.autorefresh_interval == 15

    def test_missing_file_uses_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv("JENKINS_URL", "http://from-env")
        settings = load_indicator_settings(tmp_path / "missing.env")
        assert settings.jenkins_url == "http://from-env"


class TestSettingsWatcher:
    def test_applies_changed_file(self, tmp_path):
        env_file = tmp_path / "indicator.env"
        _write(env_file, "JENKINS_URL=http://a\n", 1_000_000)
        poller = MagicMock()
        poller.settings = load_indicator_settings(env_file)
        watcher = SettingsWatcher(env_file, poller)

        assert watcher.check() is False

        _write(env_file, "JENKINS_URL=http://b\nJENKINS_AUTOREFRESH_INTERVAL=20\n", 1_000_100)
        assert watcher.check() is True

        applied = poller.apply_settings.call_args.args[0]
        assert applied.jenkins_url == "http://b"
        assert applied.autorefresh_interval == 20

    def test_invalid_file_keeps_previous_settings(self, tmp_path):
        env_file = tmp_path / "indicator.env"
        _write(env_file, "JENKINS_URL=http://a\n", 1_000_000)
        poller = MagicMock()
        watcher = SettingsWatcher(env_file, poller)

        _write(env_file, "JENKINS_AUTOREFRESH_INTERVAL=0\n", 1_000_100)

        assert watcher.check() is False
        poller.apply_settings.assert_not_called()

    def test_unreadable_file_keeps_watching(self, tmp_path):
        env_file = tmp_path / "indicator.env"
        _write(env_file, "JENKINS_URL=http://a\n", 1_000_000)
        poller = MagicMock()
        poller.settings = load_indicator_settings(env_file)
        watcher = SettingsWatcher(env_file, poller)

        env_file.write_bytes(b"JENKINS_URL=http://\xff\xfe\n")
        os.utime(env_file, (1_000_100, 1_000_100))

        assert watcher.check() is False
        poller.apply_settings.assert_not_called()

        _write(env_file, "JENKINS_URL=http://b\n", 1_000_200)
        assert watcher.check() is True
        assert poller.apply_settings.call_args.args[0].jenkins_url == "http://b"

    def test_touch_without_change_is_ignored(self, tmp_path):
        env_file = tmp_path / "indicator.env"
        _write(env_file, "JENKINS_URL=http://a\n", 1_000_000)
        poller = MagicMock()
        poller.settings = load_indicator_settings(env_file)
        watcher = SettingsWatcher(env_file, poller)

        _write(env_file, "JENKINS_URL=http://a\n", 1_000_100)

        assert watcher.check() is False
        poller.apply_settings.assert_not_called()

    @pytest.mark.asyncio
    async def test_start_stop(self, tmp_path):
        watcher = SettingsWatcher(tmp_path / "indicator.env", MagicMock(), check_interval_s=60)
        await watcher.start()
        task = watcher._task
        assert task is not None and not task.done()
        await watcher.stop()
        assert task.cancelled()
        assert watcher._task is None
