"""
Matching service - turns a job alert's criteria into ranked postings.

Flow:
1. Build a conjunctive filter expression from the alert's criteria
2. Run one ranked search against the posting index
3. Score each hit from search relevance and posting freshness
4. Sort by score, best first

Search failures are returned as a failed MatchResult, never raised, so a
broken backend only skips the alert being processed.
"""
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence
from uuid import UUID

from app.core.config import settings
from app.core.exceptions import SearchBackendError
from app.core.logging import get_logger
from app.models.job_alert import JobAlert
from app.search.models import PostingDocument, SearchHit, SearchIndex

logger = get_logger(__name__)

# Values made only of these characters can be written bare in a filter
_BARE_VALUE = re.compile(r"^[A-Za-z0-9_\-.+#]+$")


@dataclass
class ScoredMatch:
    """A posting matched for an alert, with its composite score."""

    job_id: UUID
    posting: PostingDocument
    match_score: float


@dataclass
class MatchResult:
    """Outcome of matching one alert: success with matches, or a failure cause."""

    success: bool
    matches: List[ScoredMatch] = field(default_factory=list)
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, matches: List[ScoredMatch]) -> "MatchResult":
        return cls(success=True, matches=matches)

    @classmethod
    def fail(cls, error: Exception) -> "MatchResult":
        return cls(success=False, error=error)


def _filter_value(value: str) -> str:
    value = value.strip()
    if _BARE_VALUE.match(value):
        return value
    return f"`{value.replace('`', '')}`"


def _list_clause(field_name: str, values: Sequence[str]) -> Optional[str]:
    cleaned = [_filter_value(v) for v in values if v and v.strip()]
    if not cleaned:
        return None
    return f"{field_name}:[{','.join(cleaned)}]"


def normalize_job_type(job_type: str) -> str:
    """Alerts store 'full_time'; the index stores 'full-time'."""
    return job_type.replace("_", "-")


def build_filter(alert: JobAlert) -> Optional[str]:
    """
    Build the search filter for an alert.

    Each populated criterion contributes one clause, all joined with AND.
    With include_remote, the location clause becomes
    (location OR isRemote:true). Returns None when the alert has no
    structured criteria.
    """
    clauses: List[str] = []

    location_parts = []
    if alert.city and alert.city.strip():
        location_parts.append(f"city:{_filter_value(alert.city)}")
    if alert.state and alert.state.strip():
        location_parts.append(f"state:{_filter_value(alert.state)}")

    if location_parts:
        location = " && ".join(location_parts)
        if alert.include_remote:
            if len(location_parts) > 1:
                location = f"({location})"
            clauses.append(f"({location} || isRemote:true)")
        else:
            clauses.append(location)

    if alert.job_type:
        clause = _list_clause("jobType", [normalize_job_type(t) for t in alert.job_type])
        if clause:
            clauses.append(clause)

    if alert.experience_level:
        clause = _list_clause("experience", alert.experience_level)
        if clause:
            clauses.append(clause)

    if alert.skills:
        clause = _list_clause("skills", alert.skills)
        if clause:
            clauses.append(clause)

    return " && ".join(clauses) if clauses else None


def recency_score(created_at: datetime, now: datetime) -> float:
    """
    Freshness on a 0-100 scale, decaying exponentially with posting age.

    A posting from the future counts as brand new.
    """
    age_days = max((now - created_at).total_seconds() / 86400.0, 0.0)
    return 100.0 * math.exp(-age_days / settings.alert_recency_decay_days)


def composite_score(relevance: float, created_at: datetime, now: datetime) -> float:
    """Weighted blend of relevance (0-100) and recency (0-100)."""
    return (
        settings.alert_relevance_weight * relevance
        + settings.alert_recency_weight * recency_score(created_at, now)
    )


def score_hits(hits: Sequence[SearchHit], now: datetime) -> List[ScoredMatch]:
    """
    Score and rank hits.

    Native relevance is scaled to 0-100 against the best hit of the batch,
    so the weighting works whatever range the engine reports. Ties keep
    index order.
    """
    top_relevance = max((hit.relevance_score for hit in hits), default=0.0)

    scored = []
    for hit in hits:
        relevance = (
            100.0 * hit.relevance_score / top_relevance if top_relevance > 0 else 0.0
        )
        scored.append(
            ScoredMatch(
                job_id=UUID(hit.posting.id),
                posting=hit.posting,
                match_score=round(composite_score(relevance, hit.created_at, now), 4),
            )
        )

    return sorted(scored, key=lambda m: m.match_score, reverse=True)


class MatchingService:
    """Finds and ranks postings for a single alert."""

    def __init__(self, search: SearchIndex):
        self.search = search

    async def find_matches_for_alert(
        self,
        alert: JobAlert,
        limit: int = 50,
        *,
        now: Optional[datetime] = None,
    ) -> MatchResult:
        """
        Run the alert's search and return ranked matches.

        Zero hits is a successful, empty result.
        """
        now = now or datetime.now(timezone.utc)
        filter_by = build_filter(alert)
        query = alert.search_query.strip() if alert.search_query else None

        try:
            response = await self.search.search(
                filter_by,
                query or None,
                limit,
                created_after=alert.last_sent_at,
            )
            matches = score_hits(response.hits[:limit], now)
        except Exception as exc:
            logger.warning(
                "alert_match_failed",
                alert_id=str(alert.id),
                error=str(exc),
            )
            return MatchResult.fail(
                SearchBackendError(
                    f"Failed to find matching jobs for alert {alert.id}", exc
                )
            )

        logger.debug(
            "alert_matched",
            alert_id=str(alert.id),
            filter_by=filter_by,
            hits=len(matches),
        )
        return MatchResult.ok(matches)
