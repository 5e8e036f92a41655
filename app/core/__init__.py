"""Core module exports."""
from app.core.config import settings, get_settings
from app.core.database import Base, get_db, init_db, close_db, engine, async_session_maker
from app.core.exceptions import (
    APIException,
    NotFoundException,
    ConflictException,
    ValidationException,
    AlertNotFoundException,
    AlertLimitExceededException,
    QueueUnavailableError,
    QueueNotInitializedError,
    SearchBackendError,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Database
    "Base",
    "get_db",
    "init_db",
    "close_db",
    "engine",
    "async_session_maker",
    # Exceptions
    "APIException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "AlertNotFoundException",
    "AlertLimitExceededException",
    "QueueUnavailableError",
    "QueueNotInitializedError",
    "SearchBackendError",
]
