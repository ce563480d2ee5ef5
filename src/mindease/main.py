"""Main application entry point."""

import logging
from pathlib import Path

from .api import set_control, start as start_api
from .config import MindEaseConfig
from .control import ControlSurface
from .database import SqlKeyValueStore, init_database
from .services import (
    AppIdentityResolver,
    BlockListStore,
    Credentials,
    DesktopPlatform,
    EnforcementEngine,
    UsageReporter,
)

logger = logging.getLogger(__name__)


def ensure_data_directory(db_path: Path):
    """Ensure data directory exists."""
    data_dir = Path(db_path).parent
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def build_services(config: MindEaseConfig, platform=None) -> ControlSurface:
    """Wire the services together around one database and platform."""
    session_factory = init_database(str(config.db_path))
    store = SqlKeyValueStore(session_factory)
    resolver = AppIdentityResolver.from_config(config.app_names_path)

    if platform is None:
        platform = DesktopPlatform(
            session_factory, poll_interval=config.poll_interval.total_seconds()
        )

    block_list = BlockListStore(store, resolver)
    engine = EnforcementEngine(platform, block_list, resolver)
    credentials = Credentials(store, default_base_url=config.default_base_url)
    reporter = UsageReporter(
        platform,
        credentials,
        interval=config.report_interval,
        window=config.report_window,
    )
    return ControlSurface(platform, resolver, block_list, engine, credentials, reporter)


def main():
    """Main application entry point."""
    config = MindEaseConfig.from_env()
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logger.info("🚀 Starting MindEase...")

    ensure_data_directory(config.db_path)

    logger.info("📦 Initializing database at %s", config.db_path)
    control = build_services(config)

    logger.info("🔧 Starting background services...")
    control.platform.start()

    set_control(control)
    logger.info("🌐 API server on http://%s:%d", config.api_host, config.api_port)
    try:
        start_api(host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        logger.info("👋 Shutting down MindEase...")
    finally:
        control.stop_usage_reporting()
        control.reporter.shutdown()
        control.stop_enforcement()
        control.platform.shutdown()
        logger.info("✅ Shutdown complete")


if __name__ == "__main__":
    main()
