"""Desktop implementation of the platform capabilities."""
import logging
import os
import platform
import webbrowser
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from typing import Callable, Dict, List, Optional, Tuple

import psutil
from sqlalchemy.exc import SQLAlchemyError

from ..database.models import AppActivity
from ..errors import ServiceUnavailableError
from ..utils.helpers import from_epoch_ms, to_epoch_ms
from . import app_tracker
from .app_tracker import AppTracker, ForegroundWatcher
from .platform import BlockingPrompt, EventCallback, EventType, PlatformEvent, Unsubscribe
from .usage import UsageSample

logger = logging.getLogger(__name__)

_BLOCKING_SETTINGS_URLS = {
    "Darwin": "x-apple.systempreferences:com.apple.preference.security?Privacy_Accessibility",
    "Windows": "ms-settings:privacy",
}
_USAGE_SETTINGS_URLS = {
    "Darwin": "x-apple.systempreferences:com.apple.preference.security?Privacy_ScreenCapture",
    "Windows": "ms-settings:privacy-activityhistory",
}


class DesktopPlatform:
    """Foreground events, usage history and interventions on a desktop OS."""

    def __init__(self, session_factory, poll_interval: float = 1.0,
                 tracker: Optional[AppTracker] = None):
        self.session_factory = session_factory
        self.system = platform.system()
        self.tracker = tracker or AppTracker()
        self.watcher = ForegroundWatcher(self.tracker, poll_interval, on_stint=self.record_stint)
        self.prompt_handler: Optional[Callable[[BlockingPrompt], None]] = None
        self._ui = ThreadPoolExecutor(max_workers=1, thread_name_prefix="mindease-ui")

    def start(self):
        """Start watching the foreground app and recording usage."""
        self.watcher.start()

    def shutdown(self, wait: bool = False):
        self.watcher.stop()
        self._ui.shutdown(wait=wait)

    def set_prompt_handler(self, handler: Callable[[BlockingPrompt], None]):
        """Register the UI callback that displays blocking prompts."""
        self.prompt_handler = handler

    # Events

    def subscribe_foreground(self, callback: EventCallback) -> Unsubscribe:
        def listener(app_name: str):
            callback(PlatformEvent(EventType.FOREGROUND_CHANGED, app_name))

        self.watcher.add_listener(listener)
        self.watcher.start()
        return lambda: self.watcher.remove_listener(listener)

    # Usage

    def record_stint(self, app_name: str, window_title: str,
                     start_time: datetime, end_time: datetime):
        record = AppActivity(
            app_name=app_name,
            window_title=window_title[:500],
            start_time=start_time,
            end_time=end_time,
            total_seconds=(end_time - start_time).total_seconds(),
        )
        with self.session_factory() as session, session.begin():
            session.add(record)

    def query_usage(self, start_ms: int, end_ms: int) -> List[UsageSample]:
        """
        One sample per (day, app) for foreground time inside the window.

        Stints overlapping the window edges count only their overlap, and the
        stint still in progress counts up to now. A stint is filed under the
        day its overlap starts.
        """
        if not app_tracker.BACKEND_AVAILABLE:
            raise ServiceUnavailableError(f"No foreground tracking backend on {self.system}")

        start, end = from_epoch_ms(start_ms), from_epoch_ms(end_ms)
        with self.watcher.stint_lock:
            try:
                with self.session_factory() as session:
                    rows = session.query(
                        AppActivity.app_name,
                        AppActivity.start_time,
                        AppActivity.end_time,
                    ).filter(
                        AppActivity.end_time > start,
                        AppActivity.start_time < end,
                    ).order_by(AppActivity.start_time).all()
            except SQLAlchemyError as e:
                raise ServiceUnavailableError("Usage history could not be read") from e
            open_stint = self.watcher.current_stint()

        if open_stint:
            app_name, since = open_stint
            rows.append((app_name, since, datetime.now()))

        buckets: Dict[Tuple[date, str], List[int]] = {}
        for app_name, stint_start, stint_end in rows:
            clipped_start, clipped_end = max(stint_start, start), min(stint_end, end)
            if clipped_end <= clipped_start:
                continue
            ms = int((clipped_end - clipped_start).total_seconds() * 1000)
            bucket = buckets.setdefault((clipped_start.date(), app_name), [0, 0])
            bucket[0] += ms
            bucket[1] = max(bucket[1], to_epoch_ms(clipped_end))

        return [
            UsageSample(package_id=app_name, total_foreground_ms=total, last_used_at_ms=last_used)
            for (_, app_name), (total, last_used) in buckets.items()
        ]

    # Interventions

    def navigate_home(self, package_id: str) -> None:
        """Close the blocked app's processes."""
        own_pid = os.getpid()
        killed = False
        for proc in psutil.process_iter(['pid', 'name']):
            try:
                if proc.info['pid'] == own_pid:
                    continue
                if (proc.info['name'] or '').lower() == package_id.lower():
                    proc.terminate()
                    killed = True
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                pass
        if killed:
            logger.info("⚡ Terminated: %s", package_id)
        # Report the app again on the next poll if it survived
        self.watcher.forget_current()

    def present_prompt(self, prompt: BlockingPrompt) -> None:
        self._ui.submit(self._show_prompt, prompt)

    def _show_prompt(self, prompt: BlockingPrompt):
        if self.prompt_handler is None:
            logger.warning("%s: %s", prompt.title, prompt.message)
            if prompt.on_dismiss:
                prompt.on_dismiss("Cancel")
            return
        try:
            self.prompt_handler(prompt)
        except Exception:
            logger.exception("Prompt handler failed for %s", prompt.app_name)

    # Permissions

    def has_usage_access_permission(self) -> bool:
        return app_tracker.BACKEND_AVAILABLE

    def has_blocking_permission(self) -> bool:
        return app_tracker.BACKEND_AVAILABLE and self.tracker.get_active_window() is not None

    def open_blocking_permission_settings(self) -> None:
        self._open_settings(_BLOCKING_SETTINGS_URLS.get(self.system))

    def open_usage_access_settings(self) -> None:
        self._open_settings(_USAGE_SETTINGS_URLS.get(self.system))

    def _open_settings(self, url: Optional[str]):
        if not url:
            logger.info("No permission settings page on %s; nothing to open", self.system)
            return
        if not webbrowser.open(url):
            logger.warning("Could not open %s", url)
