"""
Search index data types and the abstract search interface.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class PostingDocument:
    """A job posting as stored in the search index."""

    id: str
    title: str
    company: Optional[str] = None
    description: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    is_remote: bool = False
    job_type: Optional[str] = None  # hyphenated: 'full-time', 'part-time', ...
    experience: Optional[str] = None
    skills: List[str] = field(default_factory=list)


@dataclass
class SearchHit:
    """One ranked hit: the posting, the engine's native score, and its age anchor."""

    posting: PostingDocument
    relevance_score: float
    created_at: datetime


@dataclass
class SearchResponse:
    """Result of a search call."""

    hits: List[SearchHit] = field(default_factory=list)
    total_found: int = 0


class SearchIndex(ABC):
    """
    Read-only interface to the posting search index.

    Implementations raise SearchBackendError when the backend fails.
    """

    @abstractmethod
    async def search(
        self,
        filter_by: Optional[str],
        query: Optional[str],
        limit: int,
        *,
        created_after: Optional[datetime] = None,
    ) -> SearchResponse:
        """
        Run one ranked search.

        Args:
            filter_by: Filter expression, or None to match everything
            query: Free-text query, or None for a match-all query
            limit: Maximum number of hits
            created_after: Only postings created at or after this time
        """
        pass
