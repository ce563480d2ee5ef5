"""Event-driven enforcement of the blocked-app list."""
import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Optional

from ..errors import MindEaseError
from .block_list import BlockListStore
from .platform import BlockingPrompt, EventType, Platform, PlatformEvent, Unsubscribe
from .resolver import AppIdentityResolver

logger = logging.getLogger(__name__)


class EnforcementState(Enum):
    IDLE = "idle"
    DETECTED = "detected"
    INTERVENING = "intervening"


class EnforcementEngine:
    """Intervene whenever a blocked app comes to the foreground."""

    def __init__(self, platform: Platform, block_list: BlockListStore,
                 resolver: AppIdentityResolver):
        self.platform = platform
        self.block_list = block_list
        self.resolver = resolver
        self.state = EnforcementState.IDLE
        self.intervening_package: Optional[str] = None
        self.interventions = 0
        self.session_start: Optional[datetime] = None
        self._unsubscribe: Optional[Unsubscribe] = None
        self._lock = threading.RLock()

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    def start(self):
        """Subscribe to foreground changes. Calling it twice is a no-op."""
        with self._lock:
            if self._unsubscribe is not None:
                return
            self._unsubscribe = self.platform.subscribe_foreground(self.handle_event)
            self.session_start = datetime.now()
        logger.info("🛡️ Enforcement started")
        logger.info("📱 Blocked apps: %s", ", ".join(sorted(self.block_list.list())) or "(none)")

    def stop(self):
        with self._lock:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            self._set_idle()
            self.session_start = None
        if unsubscribe is not None:
            unsubscribe()
            logger.info("🛑 Enforcement stopped")

    def handle_event(self, event: PlatformEvent) -> bool:
        """
        Evaluate one platform event.

        Every foreground change is checked again, even for the package that
        was just blocked, since the platform may not report each launch.

        Returns:
            True if an intervention was issued
        """
        if event.event_type is not EventType.FOREGROUND_CHANGED:
            return False

        package_id = event.package_id
        with self._lock:
            if not self.active:
                return False
            try:
                blocked = bool(package_id) and self.block_list.contains(package_id)
            except MindEaseError:
                logger.exception("Could not read block list; skipping %s", package_id)
                return False

            if not blocked:
                if self.state is not EnforcementState.IDLE:
                    logger.debug("Foreground moved to %s; back to idle", package_id or "(none)")
                self._set_idle()
                return False

            self.state = EnforcementState.DETECTED
            logger.info("🚨 Blocked app in foreground: %s", package_id)
            return self._intervene(package_id)

    def _intervene(self, package_id: str) -> bool:
        app_name = self.resolver.resolve(package_id)
        try:
            self.platform.navigate_home(package_id)
        except Exception:
            # Nothing was blocked; the next event for the app tries again
            logger.exception("❌ Could not navigate away from %s", package_id)
            if self.intervening_package == package_id:
                self.state = EnforcementState.INTERVENING
            else:
                self._set_idle()
            return False
        self.interventions += 1

        if self.intervening_package == package_id:
            # Prompt for this package is still on screen
            self.state = EnforcementState.INTERVENING
            return True

        self.state = EnforcementState.INTERVENING
        self.intervening_package = package_id
        prompt = BlockingPrompt(
            package_id=package_id,
            app_name=app_name,
            on_dismiss=lambda action: self.on_prompt_dismissed(package_id, action),
        )
        try:
            self.platform.present_prompt(prompt)
        except Exception as e:
            logger.warning("Blocking prompt for %s could not be shown: %s", app_name, e)
            self._set_idle()
        return True

    def on_prompt_dismissed(self, package_id: str, action: str = "Cancel"):
        """Called from the UI context when the user closes the prompt."""
        with self._lock:
            if self.intervening_package != package_id:
                return
            logger.info("Prompt for %s closed with '%s'", package_id, action)
            self._set_idle()

    def _set_idle(self):
        self.state = EnforcementState.IDLE
        self.intervening_package = None

    def get_status(self) -> dict:
        """Get current enforcement status."""
        with self._lock:
            return {
                'active': self.active,
                'state': self.state.value,
                'intervening_package': self.intervening_package,
                'interventions': self.interventions,
                'blocked_apps': sorted(self.block_list.list()),
                'session_duration': (datetime.now() - self.session_start).total_seconds() if self.session_start else 0,
            }
