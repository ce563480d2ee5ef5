"""Runtime configuration for MindEase."""
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:5281"


@dataclass
class MindEaseConfig:
    """Settings shared by the services, API server and entry point."""

    db_path: Path = Path("data/mindease.db")
    default_base_url: str = DEFAULT_BASE_URL
    app_names_path: Optional[Path] = None
    report_interval: timedelta = timedelta(minutes=5)
    report_window: timedelta = timedelta(hours=1)
    poll_interval: timedelta = timedelta(seconds=1)
    api_host: str = "127.0.0.1"
    api_port: int = 8765
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ=None) -> "MindEaseConfig":
        """Build a config, overriding defaults with MINDEASE_* variables."""
        env = os.environ if environ is None else environ
        config = cls()

        if env.get("MINDEASE_DB_PATH"):
            config.db_path = Path(env["MINDEASE_DB_PATH"])
        if env.get("MINDEASE_BASE_URL"):
            config.default_base_url = env["MINDEASE_BASE_URL"]
        if env.get("MINDEASE_APP_NAMES"):
            config.app_names_path = Path(env["MINDEASE_APP_NAMES"])
        if env.get("MINDEASE_API_HOST"):
            config.api_host = env["MINDEASE_API_HOST"]
        if env.get("MINDEASE_API_PORT"):
            config.api_port = int(env["MINDEASE_API_PORT"])
        if env.get("MINDEASE_REPORT_INTERVAL_SECONDS"):
            config.report_interval = timedelta(
                seconds=float(env["MINDEASE_REPORT_INTERVAL_SECONDS"])
            )
        if env.get("MINDEASE_POLL_INTERVAL_SECONDS"):
            config.poll_interval = timedelta(
                seconds=float(env["MINDEASE_POLL_INTERVAL_SECONDS"])
            )
        if env.get("MINDEASE_LOG_LEVEL"):
            config.log_level = env["MINDEASE_LOG_LEVEL"].upper()
        return config
