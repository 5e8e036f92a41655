"""
Worker process entrypoint.

    python -m app.workers.worker job_alerts    # alert processing worker
    python -m app.workers.worker maintenance   # maintenance worker
    python -m app.workers.worker beat          # schedule publisher
"""
import argparse
import sys
from typing import List, Optional

from app.core.logging import get_logger, setup_logging
from app.workers.bootstrap import initialize_infrastructure
from app.workers.celery_app import celery_app
from app.workers.queue import JOB_ALERT_QUEUE, MAINTENANCE_QUEUE, QueueService

logger = get_logger(__name__)

ROLES = (JOB_ALERT_QUEUE, MAINTENANCE_QUEUE, "beat")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a job alert worker or Beat.")
    parser.add_argument("role", choices=ROLES)
    args = parser.parse_args(argv)

    setup_logging()
    queue_service = QueueService(celery_app)

    if not initialize_infrastructure(queue_service):
        logger.error("worker_start_aborted", role=args.role)
        return 1

    logger.info("worker_starting", role=args.role)
    if args.role == "beat":
        celery_app.start(["beat", "--loglevel", "INFO"])
    else:
        queue_service.start_worker(args.role)
    return 0


if __name__ == "__main__":
    sys.exit(main())
