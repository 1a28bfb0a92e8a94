"""
Jenkins indicator - console entry point.
Polls one server and logs every result; the settings file is watched and
reapplied on change.

Run from repo root:  python -m jenkins_indicator
Or, once installed:  jenkins-indicator
"""
import asyncio
import logging
import signal

from jenkins_indicator.config import load_indicator_settings, settings
from jenkins_indicator.integrations.logging_setup import configure_logging
from jenkins_indicator.poller import Poller
from jenkins_indicator.settings_source import SettingsWatcher
from jenkins_indicator.sink import LoggingSink

log = logging.getLogger(__name__)


async def run() -> None:
    indicator_settings = load_indicator_settings(settings.JENKINS_SETTINGS_FILE)
    poller = Poller()
    watcher = SettingsWatcher(
        settings.JENKINS_SETTINGS_FILE,
        poller,
        check_interval_s=settings.SETTINGS_RELOAD_INTERVAL_S,
    )

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    await poller.start(indicator_settings, LoggingSink(green_balls=indicator_settings.green_balls_plugin))
    await watcher.start()
    # show something right away instead of waiting a full interval
    poller.request_refresh()
    try:
        await stop_event.wait()
    finally:
        await watcher.stop()
        await poller.stop()


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        log.info("jenkins_indicator_interrupted")


if __name__ == "__main__":
    main()
