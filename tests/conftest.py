"""Shared fixtures for the job alert pipeline tests."""

import pytest

from tests.helpers import (
    FakeAlertRepository,
    FakeMatchRepository,
    FakeRedis,
    FakeSession,
    InMemoryStore,
)


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def db(store):
    return FakeSession(store)


@pytest.fixture
def alert_repo(store):
    return FakeAlertRepository(store)


@pytest.fixture
def match_repo(store):
    return FakeMatchRepository(store)
