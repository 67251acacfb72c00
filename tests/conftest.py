"""Shared fixtures: in-memory settings store, fake clock, fake HTTP."""

from __future__ import annotations

import pytest

from ad_creator.settings_store import ApiSettingsStore
from ad_creator.storage import MemoryStorage
from tests.fakes import FakeClock, FakeHTTP


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage) -> ApiSettingsStore:
    return ApiSettingsStore(storage)


@pytest.fixture
def fake_sleep() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_http() -> FakeHTTP:
    return FakeHTTP()
