"""Contract between the core services and the host platform."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Protocol

from .usage import UsageSample


class EventType(Enum):
    FOREGROUND_CHANGED = "foreground_changed"
    WINDOW_CONTENT_CHANGED = "window_content_changed"
    NOTIFICATION_POSTED = "notification_posted"


@dataclass(frozen=True)
class PlatformEvent:
    """An event delivered by the platform's event source."""

    event_type: EventType
    package_id: str = ""


@dataclass
class BlockingPrompt:
    """Modal prompt shown while a blocked app is being intervened on."""

    package_id: str
    app_name: str
    title: str = "App Blocked"
    message: str = ""
    actions: List[str] = field(default_factory=lambda: ["Unlock", "Cancel"])
    cancelable: bool = False
    # Called by the platform with the chosen action once the user closes it
    on_dismiss: Optional[Callable[[str], None]] = None

    def __post_init__(self):
        if not self.message:
            self.message = (
                f"{self.app_name} is currently blocked. "
                "Enter your app password to unlock."
            )


EventCallback = Callable[[PlatformEvent], None]
Unsubscribe = Callable[[], None]


class Platform(Protocol):
    """Capabilities the host platform provides to MindEase."""

    def subscribe_foreground(self, callback: EventCallback) -> Unsubscribe:
        """Deliver platform events to ``callback`` until unsubscribed."""
        ...

    def query_usage(self, start_ms: int, end_ms: int) -> List[UsageSample]:
        """Return raw usage samples for the window; may raise ServiceUnavailableError."""
        ...

    def navigate_home(self, package_id: str) -> None:
        ...

    def present_prompt(self, prompt: BlockingPrompt) -> None:
        """Schedule the prompt on the UI context and return immediately."""
        ...

    def has_blocking_permission(self) -> bool:
        ...

    def open_blocking_permission_settings(self) -> None:
        ...

    def has_usage_access_permission(self) -> bool:
        ...

    def open_usage_access_settings(self) -> None:
        ...
