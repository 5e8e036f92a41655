"""
Service layer - business logic and orchestration.

Services contain the application's business logic, coordinate between
repositories, and handle cross-cutting concerns.

RULE: Routes and tasks call services. Services call repositories. Never the reverse.
"""
from app.services.alert_processing_service import AlertProcessingService
from app.services.alert_service import AlertService
from app.services.matching_service import MatchingService
from app.services.notification_service import NotificationService

__all__ = [
    "AlertProcessingService",
    "AlertService",
    "MatchingService",
    "NotificationService",
]
