"""Settings hot reload: watch a dotenv file and push new snapshots to a poller."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from jenkins_indicator.config import load_indicator_settings
from jenkins_indicator.poller import Poller

log = logging.getLogger(__name__)


class SettingsWatcher:
    """Periodically checks the settings file's mtime and reapplies on change.

    An invalid file is logged and ignored; the poller keeps its previous
    snapshot until the file is fixed.
    """

    def __init__(
        self,
        path: Union[str, Path],
        poller: Poller,
        check_interval_s: float = 2.0,
    ) -> None:
        self.path = Path(path)
        self.poller = poller
        self.check_interval_s = max(0.1, float(check_interval_s))
        self._task: Optional[asyncio.Task] = None
        self._last_mtime: Optional[float] = self._mtime()

    def _mtime(self) -> Optional[float]:
        try:
            return self.path.stat().st_mtime
        except OSError:
            return None

    async def start(self) -> None:
        if self._task and not self._task.done():
            return
        self._task = asyncio.create_task(self._run_forever(), name="jenkins-settings-watcher")
        log.info("settings_watcher_started path=%s interval_s=%s", self.path, self.check_interval_s)

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if not task:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        log.info("settings_watcher_stopped")

    async def _run_forever(self) -> None:
        while True:
            await asyncio.sleep(self.check_interval_s)
            self.check()

    def check(self) -> bool:
        """Reload if the file changed since the last check. Returns True if applied."""
        mtime = self._mtime()
        if mtime is None or mtime == self._last_mtime:
            return False
        self._last_mtime = mtime

        try:
            new_settings = load_indicator_settings(self.path)
        except ValidationError as exc:
            log.warning("settings_reload_invalid path=%s error=%s", self.path, exc)
            return False
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("settings_reload_unreadable path=%s error=%s", self.path, exc)
            return False

        if new_settings == self.poller.settings:
            log.debug("settings_reload_unchanged path=%s", self.path)
            return False

        log.info("settings_reloaded path=%s", self.path)
        self.poller.apply_settings(new_settings)
        return True
