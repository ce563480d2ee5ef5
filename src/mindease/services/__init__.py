"""Services package initialization."""
from .resolver import AppIdentityResolver, load_app_names
from .block_list import BlockListStore
from .usage import UsageSample, UsageAggregate, aggregate, total_minutes
from .platform import BlockingPrompt, EventType, Platform, PlatformEvent
from .blocker import EnforcementEngine, EnforcementState
from .reporter import Credentials, UsageReporter
from .desktop import DesktopPlatform

__all__ = [
    'AppIdentityResolver',
    'load_app_names',
    'BlockListStore',
    'UsageSample',
    'UsageAggregate',
    'aggregate',
    'total_minutes',
    'BlockingPrompt',
    'EventType',
    'Platform',
    'PlatformEvent',
    'EnforcementEngine',
    'EnforcementState',
    'Credentials',
    'UsageReporter',
    'DesktopPlatform',
]
