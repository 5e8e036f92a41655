"""Unit tests for the matching service.

Covers:
- Filter construction (location/remote union, job-type normalization, AND join)
- Composite scoring (recency monotonicity, relevance normalization, ordering)
- MatchingService success and failure results
"""

import math
import uuid
from datetime import timedelta

import pytest

from app.core.exceptions import SearchBackendError
from app.services.matching_service import (
    MatchingService,
    build_filter,
    composite_score,
    normalize_job_type,
    recency_score,
    score_hits,
)
from tests.helpers import NOW, FakeSearchIndex, make_alert, make_hit


class TestBuildFilter:
    """Test suite for build_filter."""

    def test_city_with_remote_is_or_union(self):
        """Test that include_remote ORs the location with remote postings."""
        alert = make_alert(city="Seattle", include_remote=True)

        assert build_filter(alert) == "(city:Seattle || isRemote:true)"

    def test_city_and_state_grouped_before_remote(self):
        """Test that city and state stay ANDed inside the remote union."""
        alert = make_alert(city="Seattle", state="WA", include_remote=True)

        assert build_filter(alert) == "((city:Seattle && state:WA) || isRemote:true)"

    def test_location_without_remote(self):
        """Test that the location clause is plain when remote is excluded."""
        alert = make_alert(city="Seattle", include_remote=False)

        assert build_filter(alert) == "city:Seattle"

    def test_values_with_spaces_are_backtick_quoted(self):
        """Test that multi-word values are escaped for the filter syntax."""
        alert = make_alert(city="San Francisco", include_remote=False)

        assert build_filter(alert) == "city:`San Francisco`"

    def test_job_types_are_hyphenated(self):
        """Test that stored underscore job types become hyphenated in the filter."""
        alert = make_alert(job_type=["full_time", "part_time"])

        filter_by = build_filter(alert)

        assert filter_by == "jobType:[full-time,part-time]"
        assert "_" not in filter_by

    def test_clauses_joined_with_and(self):
        """Test that every populated criterion contributes an ANDed clause."""
        alert = make_alert(
            city="Seattle",
            job_type=["contract"],
            experience_level=["senior"],
            skills=["react", "typescript"],
        )

        assert build_filter(alert) == (
            "(city:Seattle || isRemote:true)"
            " && jobType:[contract]"
            " && experience:[senior]"
            " && skills:[react,typescript]"
        )

    def test_no_structured_criteria_returns_none(self):
        """Test that a query-only alert has no filter."""
        alert = make_alert(search_query="python developer")

        assert build_filter(alert) is None

    def test_blank_values_are_ignored(self):
        """Test that whitespace-only criteria do not produce clauses."""
        alert = make_alert(city="   ", skills=["", "  "])

        assert build_filter(alert) is None

    def test_normalize_job_type(self):
        assert normalize_job_type("full_time") == "full-time"
        assert normalize_job_type("contract") == "contract"


class TestScoring:
    """Test suite for composite scoring."""

    def test_newer_posting_scores_at_least_older(self):
        """Test that with equal relevance the newer posting never ranks lower."""
        newer = composite_score(80.0, NOW - timedelta(days=1), NOW)
        older = composite_score(80.0, NOW - timedelta(days=10), NOW)

        assert newer >= older

    def test_future_posting_counts_as_brand_new(self):
        """Test that clock skew cannot push recency above 100."""
        assert recency_score(NOW + timedelta(hours=3), NOW) == pytest.approx(100.0)

    def test_recency_decays_with_age(self):
        assert recency_score(NOW - timedelta(days=7), NOW) == pytest.approx(100.0 / math.e)

    def test_relevance_normalized_to_best_hit(self):
        """Test that the best hit of a batch gets full relevance credit."""
        hit = make_hit(relevance=85.5, age=timedelta(days=1))

        [match] = score_hits([hit], NOW)

        expected = 0.7 * 100.0 + 0.3 * 100.0 * math.exp(-1 / 7)
        assert match.match_score == pytest.approx(expected, abs=1e-4)
        assert match.job_id == uuid.UUID(hit.posting.id)

    def test_sorted_best_first(self):
        """Test that matches come back in descending score order."""
        hits = [
            make_hit(relevance=10.0, age=timedelta(days=30)),
            make_hit(relevance=90.0, age=timedelta(days=1)),
            make_hit(relevance=50.0, age=timedelta(days=2)),
        ]

        matches = score_hits(hits, NOW)

        scores = [m.match_score for m in matches]
        assert scores == sorted(scores, reverse=True)
        assert matches[0].posting.id == hits[1].posting.id

    def test_zero_relevance_batch_ranks_on_recency(self):
        hits = [
            make_hit(relevance=0.0, age=timedelta(days=5)),
            make_hit(relevance=0.0, age=timedelta(days=1)),
        ]

        matches = score_hits(hits, NOW)

        assert matches[0].posting.id == hits[1].posting.id

    def test_empty_batch(self):
        assert score_hits([], NOW) == []


class TestMatchingService:
    """Test suite for MatchingService.find_matches_for_alert."""

    async def test_returns_ranked_matches(self):
        """Test a successful search produces scored matches."""
        hits = [make_hit(relevance=40.0), make_hit(relevance=80.0)]
        search = FakeSearchIndex(hits=hits)
        alert = make_alert(city="Seattle", search_query="  react  ")

        result = await MatchingService(search).find_matches_for_alert(alert, 50, now=NOW)

        assert result.success
        assert len(result.matches) == 2
        assert result.matches[0].posting.id == hits[1].posting.id
        assert search.calls[0]["filter_by"] == "(city:Seattle || isRemote:true)"
        assert search.calls[0]["query"] == "react"

    async def test_passes_watermark_as_freshness_bound(self):
        """Test that only postings newer than the last run are requested."""
        last_sent = NOW - timedelta(days=8)
        search = FakeSearchIndex()
        alert = make_alert(skills=["go"], last_sent_at=last_sent)

        await MatchingService(search).find_matches_for_alert(alert, 50, now=NOW)

        assert search.calls[0]["created_after"] == last_sent

    async def test_zero_hits_is_success(self):
        result = await MatchingService(FakeSearchIndex()).find_matches_for_alert(
            make_alert(skills=["cobol"]), 50, now=NOW
        )

        assert result.success
        assert result.matches == []

    async def test_limit_is_applied(self):
        search = FakeSearchIndex(hits=[make_hit() for _ in range(5)])

        result = await MatchingService(search).find_matches_for_alert(
            make_alert(skills=["go"]), 3, now=NOW
        )

        assert len(result.matches) == 3
        assert search.calls[0]["limit"] == 3

    async def test_backend_failure_is_a_failed_result(self):
        """Test that search errors are returned, not raised."""
        cause = SearchBackendError("Search request timed out")

        def boom(filter_by, query):
            raise cause

        alert = make_alert(skills=["go"])

        result = await MatchingService(
            FakeSearchIndex(responder=boom)
        ).find_matches_for_alert(alert, 50, now=NOW)

        assert not result.success
        assert result.matches == []
        assert isinstance(result.error, SearchBackendError)
        assert str(alert.id) in str(result.error)
        assert result.error.cause is cause
