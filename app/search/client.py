"""
Typesense search client.

Talks to the Typesense REST API with httpx. Only the document search
endpoint is used; indexing is handled by a separate pipeline.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings
from app.core.exceptions import SearchBackendError
from app.core.logging import get_logger
from app.search.models import PostingDocument, SearchHit, SearchIndex, SearchResponse

logger = get_logger(__name__)

QUERY_BY = "title,description,company,skills"
QUERY_BY_WEIGHTS = "3,2,1,2"
ACTIVE_ONLY_FILTER = "isActive:true"


class TypesenseClient(SearchIndex):
    """
    Search client for the jobs collection.

    Usage:
        async with TypesenseClient() as search:
            response = await search.search("city:Seattle", "react", 50)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        collection: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.typesense_url).rstrip("/")
        self.api_key = api_key or settings.typesense_api_key
        self.collection = collection or settings.typesense_collection
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        """Async context manager entry - create HTTP client."""
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=settings.typesense_timeout_seconds,
            headers={"X-TYPESENSE-API-KEY": self.api_key},
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search(
        self,
        filter_by: Optional[str],
        query: Optional[str],
        limit: int,
        *,
        created_after: Optional[datetime] = None,
    ) -> SearchResponse:
        if self._client is None:
            raise RuntimeError("TypesenseClient must be used as an async context manager")

        params = self._build_params(filter_by, query, limit, created_after)
        logger.info(
            "search_jobs",
            q=params["q"],
            filter_by=params.get("filter_by"),
            limit=limit,
        )

        try:
            response = await self._client.get(
                f"/collections/{self.collection}/documents/search",
                params=params,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as exc:
            raise SearchBackendError("Search request timed out", exc) from exc
        except httpx.HTTPStatusError as exc:
            raise SearchBackendError(
                f"Search HTTP error: {exc.response.status_code}", exc
            ) from exc
        except (httpx.HTTPError, ValueError) as exc:
            raise SearchBackendError(f"Search request failed: {exc}", exc) from exc

        return self._parse_response(body)

    async def health(self) -> bool:
        """True when the Typesense node reports ok."""
        if self._client is None:
            raise RuntimeError("TypesenseClient must be used as an async context manager")
        try:
            response = await self._client.get("/health")
            response.raise_for_status()
            return bool(response.json().get("ok"))
        except (httpx.HTTPError, ValueError) as exc:
            raise SearchBackendError(f"Search health check failed: {exc}", exc) from exc

    def _build_params(
        self,
        filter_by: Optional[str],
        query: Optional[str],
        limit: int,
        created_after: Optional[datetime],
    ) -> Dict[str, Any]:
        clauses = [filter_by] if filter_by else []
        if created_after is not None:
            clauses.append(f"createdAt:>={int(created_after.timestamp())}")
        clauses.append(ACTIVE_ONLY_FILTER)

        return {
            "q": query or "*",
            "query_by": QUERY_BY,
            "query_by_weights": QUERY_BY_WEIGHTS,
            "sort_by": "_text_match:desc,createdAt:desc",
            "per_page": limit,
            "page": 1,
            "num_typos": 1,
            "prefix": "true",
            "filter_by": " && ".join(clauses),
        }

    def _parse_response(self, body: Dict[str, Any]) -> SearchResponse:
        hits = []
        for raw in body.get("hits") or []:
            doc = raw.get("document") or {}
            match_info = raw.get("text_match_info") or {}
            score = match_info.get("score", raw.get("text_match", 0))

            hits.append(
                SearchHit(
                    posting=PostingDocument(
                        id=str(doc["id"]),
                        title=doc.get("title", ""),
                        company=doc.get("company"),
                        description=doc.get("description"),
                        city=doc.get("city"),
                        state=doc.get("state"),
                        is_remote=bool(doc.get("isRemote", False)),
                        job_type=doc.get("jobType"),
                        experience=doc.get("experience"),
                        skills=list(doc.get("skills") or []),
                    ),
                    relevance_score=float(score or 0),
                    created_at=datetime.fromtimestamp(
                        int(doc.get("createdAt", 0)), tz=timezone.utc
                    ),
                )
            )

        return SearchResponse(hits=hits, total_found=int(body.get("found", len(hits))))
