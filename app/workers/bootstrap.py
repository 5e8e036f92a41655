"""
Worker infrastructure bring-up.

Queue first, then workers, then schedules. If the queue backend is down
nothing is registered and the caller decides whether to carry on without
background processing.
"""
from app.core.exceptions import QueueUnavailableError
from app.core.logging import get_logger
from app.workers.queue import QueueService
from app.workers.scheduler import register_schedules
from app.workers.tasks import register_workers

logger = get_logger(__name__)


def initialize_infrastructure(queue_service: QueueService) -> bool:
    """Returns False when the queue backend is unreachable."""
    try:
        queue_service.initialize()
    except QueueUnavailableError as exc:
        logger.error("worker_infrastructure_unavailable", error=str(exc))
        return False

    register_workers(queue_service)
    register_schedules(queue_service)

    logger.info("worker_infrastructure_ready")
    return True
