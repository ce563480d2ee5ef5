"""Periodic screen-time reporting to the MindEase backend."""
import logging
import threading
import time
from datetime import datetime, timedelta
from typing import Optional

import requests
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config import DEFAULT_BASE_URL
from ..database.store import KeyValueStore
from ..errors import NetworkError, ServiceUnavailableError
from ..utils.helpers import format_duration
from .platform import Platform
from .usage import aggregate, total_minutes

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "auth_token"
BASE_URL_KEY = "base_url"
PRODUCTIVITY_PATH = "/api/MindfulReminder/productivity"
REPORT_JOB_ID = "screen_time_report"


class Credentials:
    """Bearer token and backend base URL, persisted in the key-value store."""

    def __init__(self, store: KeyValueStore, default_base_url: str = DEFAULT_BASE_URL):
        self.store = store
        self.default_base_url = default_base_url
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._base_url: Optional[str] = None
        self._loaded = False

    def _load(self):
        with self._lock:
            if not self._loaded:
                self._token = self.store.get(AUTH_TOKEN_KEY, "")
                self._base_url = self.store.get(BASE_URL_KEY, "")
                self._loaded = True

    @property
    def token(self) -> str:
        self._load()
        return self._token or ""

    @property
    def base_url(self) -> str:
        self._load()
        return (self._base_url or self.default_base_url).rstrip("/")

    def set_token(self, token: Optional[str]):
        value = token or ""
        with self._lock:
            self.store.set(AUTH_TOKEN_KEY, value)
            self._token = value
        logger.info("🔑 Auth token %s", "updated" if value else "cleared")

    def set_base_url(self, url: Optional[str]):
        value = (url or "").strip()
        with self._lock:
            self.store.set(BASE_URL_KEY, value)
            self._base_url = value
        logger.info("🌐 Backend URL set to %s", value or self.default_base_url)


class UsageReporter:
    """Send the last hour of foreground time to the backend on a fixed interval."""

    def __init__(self, platform: Platform, credentials: Credentials,
                 http: Optional[requests.Session] = None,
                 interval: timedelta = timedelta(minutes=5),
                 window: timedelta = timedelta(hours=1),
                 timeout: float = 15.0,
                 scheduler: Optional[BackgroundScheduler] = None):
        self.platform = platform
        self.credentials = credentials
        self.http = http or requests.Session()
        self.interval = interval
        self.window = window
        self.timeout = timeout
        self.scheduler = scheduler or BackgroundScheduler()
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self.scheduler.running and self.scheduler.get_job(REPORT_JOB_ID) is not None

    def start(self):
        """Schedule reporting; the first report runs immediately."""
        with self._lock:
            if not self.scheduler.running:
                self.scheduler.start()
            self.scheduler.add_job(
                func=self.run_tick,
                trigger=IntervalTrigger(seconds=self.interval.total_seconds()),
                id=REPORT_JOB_ID,
                next_run_time=datetime.now(),
                max_instances=1,
                coalesce=True,
                replace_existing=True,
            )
        logger.info("📤 Usage reporting started (every %s)", self.interval)

    def stop(self):
        """Cancel the pending report. A report already in flight is not awaited."""
        with self._lock:
            if self.scheduler.get_job(REPORT_JOB_ID) is None:
                return
            self.scheduler.remove_job(REPORT_JOB_ID)
        logger.info("⏹️ Usage reporting stopped")

    def shutdown(self):
        """Shutdown the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)

    def next_run_time(self) -> Optional[datetime]:
        job = self.scheduler.get_job(REPORT_JOB_ID)
        return job.next_run_time if job else None

    def run_tick(self):
        """Scheduled entry point; a failed tick never stops later ones."""
        try:
            self.report_once()
        except NetworkError as e:
            logger.warning("Screen time report failed: %s", e)
        except Exception:
            logger.exception("Screen time report failed")

    def report_once(self) -> Optional[int]:
        """
        Sample the trailing window and post it.

        Returns:
            Minutes reported, or None if the tick was skipped

        Raises:
            NetworkError: transport failure or non-2xx response
        """
        end_ms = int(time.time() * 1000)
        start_ms = end_ms - int(self.window.total_seconds() * 1000)
        try:
            samples = self.platform.query_usage(start_ms, end_ms)
        except ServiceUnavailableError as e:
            logger.warning("Usage stats unavailable, skipping report: %s", e)
            return None

        minutes = total_minutes(aggregate(samples))

        token = self.credentials.token
        if not token:
            logger.debug("No auth token; not reporting %d minutes", minutes)
            return None

        self.post_screen_time(token, minutes)
        logger.info("📊 Reported %s of screen time", format_duration(minutes * 60))
        return minutes

    def post_screen_time(self, token: str, minutes: int):
        url = self.credentials.base_url + PRODUCTIVITY_PATH
        try:
            response = self.http.post(
                url,
                json={"screenTimeMinutes": minutes},
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise NetworkError(f"POST {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            raise NetworkError(
                f"backend error: {response.status_code} {response.text}",
                status_code=response.status_code,
            )
