"""Test helper utilities for the job alert pipeline tests."""

from .fakes import (
    NOW,
    FakeAlertRepository,
    FakeMatchRepository,
    FakeRedis,
    FakeSearchIndex,
    FakeSession,
    InMemoryStore,
    StoredMatch,
    make_alert,
    make_hit,
    make_job,
    make_user,
)

__all__ = [
    "NOW",
    "FakeAlertRepository",
    "FakeMatchRepository",
    "FakeRedis",
    "FakeSearchIndex",
    "FakeSession",
    "InMemoryStore",
    "StoredMatch",
    "make_alert",
    "make_hit",
    "make_job",
    "make_user",
]
