"""Operations exposed to the host application shell."""
import logging
import math
import time
from dataclasses import dataclass
from datetime import timedelta
from typing import FrozenSet, List, Optional

from .errors import MissingPermissionError, ServiceUnavailableError
from .services.block_list import BlockListStore
from .services.blocker import EnforcementEngine
from .services.platform import Platform
from .services.reporter import Credentials, UsageReporter
from .services.resolver import AppIdentityResolver
from .services.usage import aggregate
from .utils.helpers import format_duration

logger = logging.getLogger(__name__)

DAY_MS = int(timedelta(days=1).total_seconds() * 1000)


@dataclass
class UsageStat:
    package_id: str
    display_name: str
    total_foreground_ms: int
    last_used_at: int
    formatted: str


def clamp_days(days_back: float, max_days: int) -> int:
    """Whole days to look back: at least 1, at most ``max_days``."""
    if not math.isfinite(days_back):
        days = 1
    else:
        days = min(max(1, math.floor(days_back)), max(1, max_days))
    if days != days_back:
        logger.warning("days_back %r clamped to %d", days_back, days)
    return days


class ControlSurface:
    """Facade over the blocking and reporting services."""

    def __init__(self, platform: Platform, resolver: AppIdentityResolver,
                 block_list: BlockListStore, engine: EnforcementEngine,
                 credentials: Credentials, reporter: UsageReporter):
        self.platform = platform
        self.resolver = resolver
        self.block_list = block_list
        self.engine = engine
        self.credentials = credentials
        self.reporter = reporter

    # Permissions

    def has_blocking_permission(self) -> bool:
        return self.platform.has_blocking_permission()

    def open_blocking_permission_settings(self):
        self.platform.open_blocking_permission_settings()

    def has_usage_access_permission(self) -> bool:
        return self.platform.has_usage_access_permission()

    def open_usage_access_settings(self):
        self.platform.open_usage_access_settings()

    # Usage

    def get_usage_stats(self, days_back: float = 7) -> List[UsageStat]:
        """
        Per-app foreground totals for the last ``days_back`` days.

        Fractions are floored and anything below one day is treated as one day.
        NaN and infinities count as one day, and the window never reaches back
        past the epoch.

        Raises:
            MissingPermissionError: usage access has not been granted
        """
        if not self.platform.has_usage_access_permission():
            raise MissingPermissionError("usage_access")

        end_ms = int(time.time() * 1000)
        days = clamp_days(days_back, max_days=end_ms // DAY_MS)
        start_ms = end_ms - days * DAY_MS
        try:
            samples = self.platform.query_usage(start_ms, end_ms)
        except ServiceUnavailableError as e:
            logger.warning("Usage stats unavailable: %s", e)
            return []

        return [
            UsageStat(
                package_id=item.package_id,
                display_name=self.resolver.resolve(item.package_id),
                total_foreground_ms=item.total_foreground_ms,
                last_used_at=item.last_used_at_ms,
                formatted=format_duration(item.total_foreground_ms / 1000),
            )
            for item in aggregate(samples)
        ]

    # Block list

    def block_app(self, app_id: str):
        self.block_list.add(app_id)

    def unblock_app(self, app_id: str):
        self.block_list.remove(app_id)

    def get_blocked_apps(self) -> FrozenSet[str]:
        return self.block_list.list()

    # Enforcement

    def start_enforcement(self):
        """
        Raises:
            MissingPermissionError: the platform does not allow blocking
        """
        if not self.platform.has_blocking_permission():
            raise MissingPermissionError("blocking")
        self.engine.start()

    def stop_enforcement(self):
        self.engine.stop()

    def enforcement_status(self) -> dict:
        return self.engine.get_status()

    # Reporting

    def set_auth_token(self, token: Optional[str]):
        self.credentials.set_token(token)

    def set_base_url(self, url: Optional[str]):
        self.credentials.set_base_url(url)

    def start_usage_reporting(self):
        self.reporter.start()

    def stop_usage_reporting(self):
        self.reporter.stop()

    def reporting_status(self) -> dict:
        next_run = self.reporter.next_run_time()
        return {
            'running': self.reporter.running,
            'next_run_time': next_run.isoformat() if next_run else None,
            'base_url': self.credentials.base_url,
            'authenticated': bool(self.credentials.token),
        }
