"""Checks that the MindEase stack is installed and wires together."""
from mindease.config import DEFAULT_BASE_URL, MindEaseConfig
from mindease.database import init_database
from mindease.main import build_services


def test_imports():
    """All required third-party modules can be imported."""
    import fastapi
    import psutil
    import requests
    import sqlalchemy
    import uvicorn
    from apscheduler.schedulers.background import BackgroundScheduler

    from mindease.api import app
    from mindease.services import DesktopPlatform, EnforcementEngine, UsageReporter

    assert app.title == "MindEase API"


def test_database(tmp_path):
    session_factory = init_database(str(tmp_path / "test.db"))
    with session_factory() as session:
        assert session.bind.dialect.name == "sqlite"
    assert (tmp_path / "test.db").exists()


def test_api_routes():
    from mindease.api import app

    routes = {route.path for route in app.routes}
    assert {
        "/",
        "/permissions",
        "/usage",
        "/blocked",
        "/blocked/{app_id}",
        "/enforcement/start",
        "/reporting/start",
        "/credentials/token",
    } <= routes


def test_config_defaults_and_env_overrides(tmp_path):
    assert MindEaseConfig().default_base_url == DEFAULT_BASE_URL == "http://localhost:5281"

    config = MindEaseConfig.from_env({
        "MINDEASE_DB_PATH": str(tmp_path / "x.db"),
        "MINDEASE_BASE_URL": "https://api.mindease.example",
        "MINDEASE_API_PORT": "9000",
        "MINDEASE_REPORT_INTERVAL_SECONDS": "60",
        "MINDEASE_LOG_LEVEL": "debug",
    })

    assert config.db_path == tmp_path / "x.db"
    assert config.default_base_url == "https://api.mindease.example"
    assert config.api_port == 9000
    assert config.report_interval.total_seconds() == 60
    assert config.log_level == "DEBUG"


def test_build_services_shares_one_store(tmp_path, fake_platform):
    config = MindEaseConfig(db_path=tmp_path / "services.db")
    control = build_services(config, platform=fake_platform)

    control.block_app("Instagram")
    control.set_auth_token("abc")

    again = build_services(config, platform=fake_platform)
    assert again.get_blocked_apps() == {"Instagram"}
    assert again.credentials.token == "abc"
