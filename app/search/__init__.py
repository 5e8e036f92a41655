"""
Search index access - the posting index consumed by alert matching.
"""
from app.search.models import PostingDocument, SearchHit, SearchIndex, SearchResponse
from app.search.client import TypesenseClient

__all__ = [
    "PostingDocument",
    "SearchHit",
    "SearchIndex",
    "SearchResponse",
    "TypesenseClient",
]
