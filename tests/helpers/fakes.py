"""In-memory fakes and builders for the alert pipeline tests.

The fakes stand in for Postgres, Redis and Typesense at the repository,
client and index seams, so the services run unchanged against them.
"""

import copy
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Callable, Dict, List, Optional

from app.search.models import PostingDocument, SearchHit, SearchIndex, SearchResponse

NOW = datetime(2026, 10, 12, 8, 0, tzinfo=timezone.utc)


# ─── Redis ────────────────────────────────────────────────────────


class FakeRedis:
    """Subset of redis.Redis (decode_responses=True) used by QueueService."""

    def __init__(self, fail_ping: bool = False):
        self.values: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}
        self.fail_ping = fail_ping
        self.closed = False

    def ping(self):
        if self.fail_ping:
            raise ConnectionError("Connection refused")
        return True

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    def get(self, key):
        return self.values.get(key)

    def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None:
                removed += 1
        return removed

    def lpush(self, key, value):
        self.lists.setdefault(key, []).insert(0, value)
        return len(self.lists[key])

    def ltrim(self, key, start, end):
        self.lists[key] = self.lists.get(key, [])[start:end + 1]
        return True

    def lrange(self, key, start, end):
        return self.lists.get(key, [])[start:end + 1]

    def llen(self, key):
        return len(self.lists.get(key, []))

    def close(self):
        self.closed = True


# ─── Store ────────────────────────────────────────────────────────


@dataclass
class StoredMatch:
    id: uuid.UUID
    job_alert_id: uuid.UUID
    job_id: uuid.UUID
    match_score: float
    was_sent: bool = False
    matched_at: datetime = NOW
    job: Optional[SimpleNamespace] = None


@dataclass
class InMemoryStore:
    """Alerts, matches and the job catalogue the fake repositories share."""

    alerts: List[SimpleNamespace] = field(default_factory=list)
    matches: List[StoredMatch] = field(default_factory=list)
    jobs: Dict[uuid.UUID, SimpleNamespace] = field(default_factory=dict)

    def snapshot(self):
        return (
            copy.deepcopy(self.matches),
            {a.id: (a.last_sent_at, a.is_paused) for a in self.alerts},
        )

    def restore(self, snapshot):
        matches, alert_state = snapshot
        self.matches = matches
        for alert in self.alerts:
            alert.last_sent_at, alert.is_paused = alert_state[alert.id]

    def matches_for(self, alert_id):
        return [m for m in self.matches if m.job_alert_id == alert_id]


class FakeSession:
    """AsyncSession stand-in: savepoints snapshot and restore the store."""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.commits = 0
        self.rollbacks = 0

    @asynccontextmanager
    async def begin_nested(self):
        snapshot = self.store.snapshot()
        try:
            yield self
        except Exception:
            self.store.restore(snapshot)
            self.rollbacks += 1
            raise

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class FakeAlertRepository:
    """AlertRepository over an InMemoryStore."""

    def __init__(self, store: InMemoryStore):
        self.store = store
        self.created: List[dict] = []

    async def find_alerts_due(self, db, frequency, cutoff):
        return [
            a for a in self.store.alerts
            if a.frequency == frequency
            and a.is_active
            and not a.is_paused
            and (a.last_sent_at is None or a.last_sent_at < cutoff)
        ]

    async def update_last_sent_at(self, db, alert_id, timestamp):
        for alert in self.store.alerts:
            if alert.id == alert_id:
                alert.last_sent_at = timestamp

    async def count_active_for_user(self, db, user_id):
        return sum(
            1 for a in self.store.alerts
            if a.user_id == user_id and a.is_active and not a.is_paused
        )

    async def get_by_id(self, db, alert_id):
        return next((a for a in self.store.alerts if a.id == alert_id), None)

    async def create(self, db, **kwargs):
        self.created.append(kwargs)
        alert = make_alert(**kwargs)
        self.store.alerts.append(alert)
        return alert

    async def update(self, db, instance, **kwargs):
        for key, value in kwargs.items():
            setattr(instance, key, value)
        return instance

    async def find_for_user(self, db, user_id, *, page=1, limit=10):
        owned = [a for a in self.store.alerts if a.user_id == user_id]
        start = (page - 1) * limit
        return owned[start:start + limit], len(owned)


class FakeMatchRepository:
    """MatchRepository over an InMemoryStore, honouring (alert, job) uniqueness."""

    def __init__(self, store: InMemoryStore):
        self.store = store

    async def insert_matches(self, db, alert_id, scored):
        existing = {m.job_id for m in self.store.matches_for(alert_id)}
        inserted = 0
        for job_id, score in scored:
            if job_id in existing:
                continue
            self.store.matches.append(
                StoredMatch(
                    id=uuid.uuid4(),
                    job_alert_id=alert_id,
                    job_id=job_id,
                    match_score=score,
                    job=self.store.jobs.get(job_id),
                )
            )
            existing.add(job_id)
            inserted += 1
        return inserted

    async def find_unsent_matches(self, db, alert_id, limit=10):
        unsent = [m for m in self.store.matches_for(alert_id) if not m.was_sent]
        unsent.sort(key=lambda m: m.match_score, reverse=True)
        return unsent[:limit]

    async def count_unsent_matches(self, db, alert_id):
        return sum(1 for m in self.store.matches_for(alert_id) if not m.was_sent)

    async def mark_matches_sent(self, db, match_ids):
        ids = set(match_ids)
        for match in self.store.matches:
            if match.id in ids:
                match.was_sent = True
        return len(ids)


# ─── Search ───────────────────────────────────────────────────────


class FakeSearchIndex(SearchIndex):
    """
    Returns canned hits. `responder(filter_by, query)` may return a list of
    hits or raise to simulate a backend failure.
    """

    def __init__(self, hits: Optional[List[SearchHit]] = None, responder: Callable = None):
        self.hits = hits or []
        self.responder = responder
        self.calls: List[dict] = []

    async def search(self, filter_by, query, limit, *, created_after=None):
        self.calls.append(
            {
                "filter_by": filter_by,
                "query": query,
                "limit": limit,
                "created_after": created_after,
            }
        )
        hits = self.responder(filter_by, query) if self.responder else self.hits
        return SearchResponse(hits=list(hits)[:limit], total_found=len(hits))


# ─── Builders ─────────────────────────────────────────────────────


def make_user(**overrides) -> SimpleNamespace:
    values = {
        "id": uuid.uuid4(),
        "email": "dev@example.com",
        "full_name": "Ada Dev",
        "is_active": True,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def make_alert(**overrides) -> SimpleNamespace:
    values = {
        "id": uuid.uuid4(),
        "user_id": uuid.uuid4(),
        "user": None,
        "name": "Frontend roles",
        "description": None,
        "search_query": None,
        "city": None,
        "state": None,
        "job_type": None,
        "skills": None,
        "experience_level": None,
        "include_remote": True,
        "frequency": "weekly",
        "is_active": True,
        "is_paused": False,
        "last_sent_at": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def make_hit(
    relevance: float = 80.0,
    age: timedelta = timedelta(days=1),
    job_id: Optional[uuid.UUID] = None,
    now: datetime = NOW,
    **posting,
) -> SearchHit:
    doc = {"title": "Frontend Engineer", "city": "Seattle", "state": "WA"}
    doc.update(posting)
    return SearchHit(
        posting=PostingDocument(id=str(job_id or uuid.uuid4()), **doc),
        relevance_score=relevance,
        created_at=now - age,
    )


def make_job(job_id: uuid.UUID, company: Optional[str] = "Acme", **overrides) -> SimpleNamespace:
    values = {
        "id": job_id,
        "title": "Frontend Engineer",
        "description": "Build UIs in React",
        "location": "Seattle, WA",
        "job_type": "full-time",
        "experience": "mid",
        "company": SimpleNamespace(name=company) if company else None,
    }
    values.update(overrides)
    return SimpleNamespace(**values)
