"""Unit tests for the SQL the alert and match repositories emit.

Statements are captured from a mocked AsyncSession and compiled with the
PostgreSQL dialect, so the conflict target, due-alert filter and RETURNING
columns are checked without a live database.
"""

import uuid
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.dialects import postgresql

from app.repositories.alert_repository import AlertRepository
from app.repositories.match_repository import MatchRepository
from tests.helpers import NOW


def session_returning(scalars=(), rowcount=0):
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(scalars)
    result.rowcount = rowcount
    db = AsyncMock()
    db.execute.return_value = result
    return db


def compiled(db):
    statement = db.execute.await_args.args[0]
    return statement.compile(dialect=postgresql.dialect())


class TestMatchRepository:
    """Test suite for MatchRepository SQL."""

    async def test_insert_skips_existing_pairs_on_unique_constraint(self):
        """Test that duplicate (alert, job) pairs are dropped by the conflict clause."""
        db = session_returning(scalars=[uuid.uuid4(), uuid.uuid4()])
        alert_id = uuid.uuid4()

        inserted = await MatchRepository().insert_matches(
            db, alert_id, [(uuid.uuid4(), 91.0), (uuid.uuid4(), 64.5)]
        )

        sql = str(compiled(db))
        assert inserted == 2
        assert sql.startswith("INSERT INTO job_alert_matches")
        assert "ON CONFLICT ON CONSTRAINT uq_job_alert_match DO NOTHING" in sql
        assert sql.endswith("RETURNING job_alert_matches.id")
        params = compiled(db).params
        assert params["job_alert_id_m0"] == alert_id
        assert params["match_score_m1"] == 64.5
        assert params["was_sent_m0"] is False

    async def test_insert_nothing_skips_the_round_trip(self):
        db = session_returning()

        assert await MatchRepository().insert_matches(db, uuid.uuid4(), []) == 0
        db.execute.assert_not_awaited()

    async def test_unsent_matches_ordered_by_score(self):
        db = session_returning()
        alert_id = uuid.uuid4()

        await MatchRepository().find_unsent_matches(db, alert_id, 10)

        sql = str(compiled(db))
        assert "job_alert_matches.was_sent = false" in sql
        assert "ORDER BY job_alert_matches.match_score DESC, job_alert_matches.matched_at" in sql
        assert "LIMIT %(param_1)s" in sql

    async def test_mark_sent_updates_only_given_ids(self):
        db = session_returning(rowcount=2)
        ids = [uuid.uuid4(), uuid.uuid4()]

        assert await MatchRepository().mark_matches_sent(db, ids) == 2

        statement = compiled(db)
        sql = str(statement)
        assert sql.startswith("UPDATE job_alert_matches SET")
        assert "was_sent=%(was_sent)s" in sql
        assert "WHERE job_alert_matches.id IN" in sql
        assert statement.params["was_sent"] is True
        assert statement.params["id_1"] == ids

    async def test_mark_sent_with_no_ids_is_noop(self):
        db = session_returning()

        assert await MatchRepository().mark_matches_sent(db, []) == 0
        db.execute.assert_not_awaited()


class TestAlertRepository:
    """Test suite for AlertRepository SQL."""

    async def test_due_alerts_filter(self):
        """Test that due means active, not paused and watermark unset or before cutoff."""
        db = session_returning()
        cutoff = NOW - timedelta(days=7)

        await AlertRepository().find_alerts_due(db, "weekly", cutoff)

        statement = compiled(db)
        sql = str(statement)
        assert "FROM job_alerts" in sql
        assert "job_alerts.frequency = %(frequency_1)s" in sql
        assert "job_alerts.is_active = true" in sql
        assert "job_alerts.is_paused = false" in sql
        assert (
            "(job_alerts.last_sent_at IS NULL OR job_alerts.last_sent_at < %(last_sent_at_1)s)"
            in sql
        )
        assert "ORDER BY job_alerts.created_at" in sql
        assert statement.params["frequency_1"] == "weekly"
        assert statement.params["last_sent_at_1"] == cutoff

    async def test_watermark_update_targets_one_alert(self):
        db = session_returning()
        alert_id = uuid.uuid4()

        await AlertRepository().update_last_sent_at(db, alert_id, NOW)

        statement = compiled(db)
        assert str(statement).startswith("UPDATE job_alerts SET")
        assert "last_sent_at=%(last_sent_at)s" in str(statement)
        assert "WHERE job_alerts.id = %(id_1)s" in str(statement)
        assert statement.params["last_sent_at"] == NOW
        assert statement.params["id_1"] == alert_id

    async def test_active_count_excludes_paused(self):
        db = session_returning()
        db.execute.return_value.scalar.return_value = 3

        assert await AlertRepository().count_active_for_user(db, uuid.uuid4()) == 3

        sql = str(compiled(db))
        assert "count(*)" in sql
        assert "job_alerts.is_active = true AND job_alerts.is_paused = false" in sql

    async def test_pause_for_inactive_users_returns_owners(self):
        """Test that pausing targets deactivated owners and reports distinct users."""
        owner, other = uuid.uuid4(), uuid.uuid4()
        db = session_returning(scalars=[owner, owner, other])

        result = await AlertRepository().pause_alerts_for_inactive_users(db)

        sql = str(compiled(db))
        assert sql.startswith("UPDATE job_alerts SET")
        assert "is_paused=%(is_paused)s" in sql
        assert "job_alerts.user_id IN (SELECT users.id" in sql
        assert "users.is_active = false" in sql
        assert "job_alerts.is_active = true AND job_alerts.is_paused = false" in sql
        assert sql.endswith("RETURNING job_alerts.user_id")
        assert result == {"alerts_paused": 3, "users_affected": 2}

    async def test_user_alerts_newest_first_with_offset(self):
        db = session_returning()
        db.execute.return_value.scalar.return_value = 0

        await AlertRepository().find_for_user(db, uuid.uuid4(), page=3, limit=10)

        statement = compiled(db)
        assert "ORDER BY job_alerts.created_at DESC" in str(statement)
        assert "OFFSET" in str(statement)
        assert 20 in statement.params.values()
