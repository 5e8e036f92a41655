"""
Repository layer - data access abstraction.

Repositories handle all database queries, keeping SQL/ORM logic
out of the service and worker layers.
"""
from app.repositories.base import BaseRepository
from app.repositories.alert_repository import AlertRepository
from app.repositories.match_repository import MatchRepository

__all__ = [
    "BaseRepository",
    "AlertRepository",
    "MatchRepository",
]
