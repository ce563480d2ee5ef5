"""Shared pytest fixtures for MindEase."""
from typing import List, Optional

import pytest

from mindease.database import SqlKeyValueStore, init_database
from mindease.errors import ServiceUnavailableError
from mindease.services import AppIdentityResolver, BlockListStore, BlockingPrompt, UsageSample


class FakePlatform:
    """Synthetic event feed and recorded side effects."""

    def __init__(self):
        self.callbacks = []
        self.navigations: List[str] = []
        self.prompts: List[BlockingPrompt] = []
        self.samples: List[UsageSample] = []
        self.usage_queries = []
        self.usage_available = True
        self.blocking_permission = True
        self.usage_permission = True
        self.prompt_error: Optional[Exception] = None
        self.navigate_error: Optional[Exception] = None
        self.opened: List[str] = []

    def subscribe_foreground(self, callback):
        self.callbacks.append(callback)
        return lambda: self.callbacks.remove(callback)

    def emit(self, event):
        return [callback(event) for callback in list(self.callbacks)]

    def query_usage(self, start_ms, end_ms):
        self.usage_queries.append((start_ms, end_ms))
        if not self.usage_available:
            raise ServiceUnavailableError("usage stats service missing")
        return list(self.samples)

    def navigate_home(self, package_id):
        if self.navigate_error:
            raise self.navigate_error
        self.navigations.append(package_id)

    def present_prompt(self, prompt):
        if self.prompt_error:
            raise self.prompt_error
        self.prompts.append(prompt)

    def has_blocking_permission(self):
        return self.blocking_permission

    def open_blocking_permission_settings(self):
        self.opened.append("blocking")

    def has_usage_access_permission(self):
        return self.usage_permission

    def open_usage_access_settings(self):
        self.opened.append("usage_access")


class FakeResponse:
    def __init__(self, status_code=200, text=""):
        self.status_code = status_code
        self.text = text


class FakeHttp:
    """Stands in for requests.Session, recording every POST."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def session_factory(tmp_path):
    return init_database(str(tmp_path / "test.db"))


@pytest.fixture
def store(session_factory):
    return SqlKeyValueStore(session_factory)


@pytest.fixture
def resolver():
    return AppIdentityResolver.from_config()


@pytest.fixture
def block_list(store, resolver):
    return BlockListStore(store, resolver)


@pytest.fixture
def fake_platform():
    return FakePlatform()


@pytest.fixture
def fake_http():
    return FakeHttp()
