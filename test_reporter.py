"""Screen time reporter tests."""
from datetime import timedelta

import pytest
import requests

from conftest import FakeHttp, FakeResponse
from mindease.errors import NetworkError
from mindease.services import Credentials, UsageReporter, UsageSample


@pytest.fixture
def credentials(store):
    return Credentials(store, default_base_url="http://localhost:5281")


def make_reporter(platform, credentials, http):
    return UsageReporter(platform, credentials, http=http)


def test_no_request_without_token(fake_platform, credentials, fake_http):
    fake_platform.samples = [UsageSample("com.a", 3_780_000)]
    reporter = make_reporter(fake_platform, credentials, fake_http)

    assert reporter.report_once() is None
    credentials.set_token("")
    assert reporter.report_once() is None
    assert fake_http.calls == []


def test_posts_rounded_minutes_with_bearer_token(fake_platform, credentials, fake_http):
    credentials.set_token("abc")
    fake_platform.samples = [
        UsageSample("com.a", 3_000_000),
        UsageSample("com.b", 780_000),
    ]
    reporter = make_reporter(fake_platform, credentials, fake_http)

    assert reporter.report_once() == 63

    assert len(fake_http.calls) == 1
    call = fake_http.calls[0]
    assert call["url"] == "http://localhost:5281/api/MindfulReminder/productivity"
    assert call["json"] == {"screenTimeMinutes": 63}
    assert call["headers"]["Authorization"] == "Bearer abc"
    assert call["headers"]["Content-Type"] == "application/json"


def test_half_minute_rounds_up(fake_platform, credentials, fake_http):
    credentials.set_token("abc")
    fake_platform.samples = [UsageSample("com.a", 3_810_000)]

    make_reporter(fake_platform, credentials, fake_http).report_once()

    assert fake_http.calls[0]["json"] == {"screenTimeMinutes": 64}


def test_queries_the_trailing_hour(fake_platform, credentials, fake_http):
    credentials.set_token("abc")
    make_reporter(fake_platform, credentials, fake_http).report_once()

    start_ms, end_ms = fake_platform.usage_queries[0]
    assert end_ms - start_ms == 3_600_000


def test_custom_base_url_is_used(fake_platform, credentials, fake_http):
    credentials.set_token("abc")
    credentials.set_base_url("https://api.mindease.example/")

    make_reporter(fake_platform, credentials, fake_http).report_once()

    assert fake_http.calls[0]["url"] == "https://api.mindease.example/api/MindfulReminder/productivity"


def test_empty_base_url_falls_back_to_default(credentials):
    credentials.set_base_url(None)
    assert credentials.base_url == "http://localhost:5281"


def test_credentials_survive_restart(store, credentials):
    credentials.set_token("abc")
    credentials.set_base_url("https://api.mindease.example")

    reloaded = Credentials(store)
    assert reloaded.token == "abc"
    assert reloaded.base_url == "https://api.mindease.example"


def test_non_2xx_raises_network_error(fake_platform, credentials):
    credentials.set_token("abc")
    http = FakeHttp(response=FakeResponse(401, "unauthorized"))
    reporter = make_reporter(fake_platform, credentials, http)

    with pytest.raises(NetworkError) as excinfo:
        reporter.report_once()
    assert excinfo.value.status_code == 401


def test_failed_tick_is_absorbed(fake_platform, credentials):
    credentials.set_token("abc")
    http = FakeHttp(error=requests.ConnectionError("refused"))
    reporter = make_reporter(fake_platform, credentials, http)

    reporter.run_tick()
    reporter.run_tick()

    assert len(http.calls) == 2


def test_unavailable_usage_source_skips_tick(fake_platform, credentials, fake_http):
    credentials.set_token("abc")
    fake_platform.usage_available = False

    assert make_reporter(fake_platform, credentials, fake_http).report_once() is None
    assert fake_http.calls == []


def test_start_schedules_and_stop_cancels(fake_platform, credentials, fake_http):
    reporter = UsageReporter(
        fake_platform, credentials, http=fake_http, interval=timedelta(minutes=5)
    )
    try:
        reporter.start()
        assert reporter.running
        assert reporter.next_run_time() is not None

        reporter.stop()
        assert not reporter.running
        assert reporter.next_run_time() is None

        reporter.stop()
    finally:
        reporter.shutdown()
