"""Desktop foreground application tracking."""
import logging
import platform
import threading
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

import psutil

logger = logging.getLogger(__name__)

BACKEND_AVAILABLE = False
UNKNOWN = "Unknown"

# Platform-specific imports
if platform.system() == "Windows":
    try:
        import win32gui
        import win32process
        BACKEND_AVAILABLE = True
    except ImportError:
        logger.warning("pywin32 not installed. Install it for Windows tracking.")
elif platform.system() == "Linux":
    try:
        from Xlib import display
        BACKEND_AVAILABLE = True
    except ImportError:
        logger.warning("python-xlib not installed. Install it for Linux tracking.")
elif platform.system() == "Darwin":  # macOS
    try:
        from AppKit import NSWorkspace
        from Quartz import (
            CGWindowListCopyWindowInfo,
            kCGWindowListOptionOnScreenOnly,
            kCGNullWindowID,
        )
        BACKEND_AVAILABLE = True
    except ImportError:
        logger.warning("pyobjc not installed. Install it for macOS tracking.")


class ActiveWindow(NamedTuple):
    """The app in the foreground; the app name is what block lists match on."""
    app_name: str
    window_title: str


def _process_name(pid: int) -> str:
    try:
        return psutil.Process(pid).name()
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return UNKNOWN


def _read_windows() -> ActiveWindow:
    hwnd = win32gui.GetForegroundWindow()
    _, pid = win32process.GetWindowThreadProcessId(hwnd)
    # Executable name, so it matches what navigate_home terminates
    return ActiveWindow(_process_name(pid), win32gui.GetWindowText(hwnd) or "")


def _read_x11() -> ActiveWindow:
    conn = display.Display()
    try:
        # Input focus usually lands on a client child; climb to the toplevel
        # that carries WM_CLASS.
        window = conn.get_input_focus().focus
        wm_class = None
        while window and not isinstance(window, int):
            wm_class = window.get_wm_class()
            if wm_class:
                break
            window = window.query_tree().parent
        if not wm_class or isinstance(window, int):
            return ActiveWindow(UNKNOWN, "")
        # WM_CLASS is (instance, class); the class is the stable app name
        return ActiveWindow(wm_class[-1], window.get_wm_name() or "")
    finally:
        conn.close()


def _read_macos() -> ActiveWindow:
    front = NSWorkspace.sharedWorkspace().activeApplication()
    pid = front["NSApplicationProcessIdentifier"]
    title = ""
    for info in CGWindowListCopyWindowInfo(kCGWindowListOptionOnScreenOnly, kCGNullWindowID):
        if info.get("kCGWindowOwnerPID") == pid:
            title = info.get("kCGWindowName") or ""
            break
    return ActiveWindow(front["NSApplicationName"], title)


_READERS: Dict[str, Callable[[], ActiveWindow]] = {
    "Windows": _read_windows,
    "Linux": _read_x11,
    "Darwin": _read_macos,
}


class AppTracker:
    """Read the active application and window title."""

    def __init__(self):
        self.system = platform.system()
        self._reader = _READERS.get(self.system)

    def get_active_window(self) -> Optional[ActiveWindow]:
        """The foreground app, or None when it cannot be read right now."""
        if not BACKEND_AVAILABLE or self._reader is None:
            return None
        try:
            return self._reader()
        except Exception as e:
            # No focused window, a closed display, a race with the app exiting
            logger.debug("Could not read the active window on %s: %s", self.system, e)
            return None


class ForegroundWatcher:
    """
    Poll the active application and report when it changes.

    Listeners are called on the watcher thread, one change at a time. Each
    finished stint is passed to ``on_stint`` as
    (app_name, window_title, start_time, end_time).
    """

    def __init__(self, tracker: AppTracker, interval: float = 1.0,
                 on_stint: Optional[Callable[[str, str, datetime, datetime], None]] = None):
        self.tracker = tracker
        self.interval = interval
        self.on_stint = on_stint
        self.current_app: Optional[str] = None
        self.current_window: Optional[str] = None
        self.start_time: Optional[datetime] = None
        # Held while a stint is recorded, so readers never see it twice
        self.stint_lock = threading.RLock()
        self._listeners: List[Callable[[str], None]] = []
        self._listeners_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def add_listener(self, listener: Callable[[str], None]):
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[str], None]):
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="foreground-watcher", daemon=True)
        self._thread.start()
        logger.info("✅ Foreground watcher started")

    def stop(self):
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
        self._finish_stint(datetime.now())
        logger.info("Foreground watcher stopped")

    def forget_current(self):
        """Close the current stint so the next poll reports the app again."""
        self._finish_stint(datetime.now())

    def current_stint(self) -> Optional[Tuple[str, datetime]]:
        """(app_name, start_time) of the stint not yet recorded, if any."""
        with self.stint_lock:
            if self.current_app and self.start_time:
                return self.current_app, self.start_time
            return None

    def poll_once(self):
        result = self.tracker.get_active_window()
        if not result:
            return

        app_name, window_title = result
        if app_name == self.current_app:
            return

        now = datetime.now()
        with self.stint_lock:
            self._finish_stint(now)
            self.current_app = app_name
            self.current_window = window_title
            self.start_time = now

        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(app_name)
            except Exception:
                logger.exception("Foreground listener failed for %s", app_name)

    def _finish_stint(self, end_time: datetime):
        with self.stint_lock:
            if self.current_app and self.start_time and self.on_stint:
                try:
                    self.on_stint(self.current_app, self.current_window or "", self.start_time, end_time)
                except Exception:
                    logger.exception("Could not record activity for %s", self.current_app)
            self.current_app = None
            self.current_window = None
            self.start_time = None

    def _run(self):
        while not self._stop_event.is_set():
            self.poll_once()
            self._stop_event.wait(self.interval)
