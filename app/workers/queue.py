"""
Queue service - named work queues on top of Celery and Redis.

Celery provides delivery (late acks, retries, time limits, rate limits) and
Beat provides recurring schedules. Redis additionally holds:
- idempotency keys, so a keyed task is enqueued once while it is pending
- per-queue dead-letter lists for tasks that exhausted their retries

The service is an explicit object with an initialize()/shutdown() lifecycle.
Nothing can be enqueued, scheduled or registered before initialize()
succeeds, which keeps worker bring-up all-or-nothing.
"""
import asyncio
import inspect
import json
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

import redis
from celery import Celery
from celery.schedules import crontab

from app.core.config import settings
from app.core.exceptions import QueueNotInitializedError, QueueUnavailableError
from app.core.logging import bind_task_context, clear_task_context, get_logger

logger = get_logger(__name__)


# Queue names
JOB_ALERT_QUEUE = "job_alerts"
MAINTENANCE_QUEUE = "maintenance"
EMAIL_QUEUE = "email"

QUEUE_NAMES = (JOB_ALERT_QUEUE, MAINTENANCE_QUEUE, EMAIL_QUEUE)

# kombu's Redis transport keeps one list per priority step when
# queue_order_strategy is "priority"; step 0 uses the bare queue name.
BROKER_PRIORITY_STEPS = (0, 3, 6, 9)
BROKER_PRIORITY_SEP = "\x06\x16"


def broker_queue_key(queue_name: str, step: int) -> str:
    return f"{queue_name}{BROKER_PRIORITY_SEP}{step}" if step else queue_name


def run_async(coro):
    """
    Helper to run async code in sync Celery tasks.

    Celery workers are synchronous. Our services are async (because
    SQLAlchemy async requires it). This bridge creates an event loop,
    runs the coroutine, and cleans up.
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def crontab_from_pattern(pattern: str) -> crontab:
    """Translate a 5-field cron expression into a Celery crontab."""
    fields = pattern.split()
    if len(fields) != 5:
        raise ValueError(f"Invalid cron pattern {pattern!r}: expected 5 fields")
    minute, hour, day_of_month, month_of_year, day_of_week = fields
    return crontab(
        minute=minute,
        hour=hour,
        day_of_month=day_of_month,
        month_of_year=month_of_year,
        day_of_week=day_of_week,
    )


@dataclass
class RateLimit:
    """At most `max` executions per `window_ms` milliseconds."""

    max: int
    window_ms: int

    def to_celery(self) -> str:
        """Celery rate-limit string, e.g. '10/m'."""
        if self.window_ms == 3_600_000:
            return f"{self.max}/h"
        if self.window_ms == 60_000:
            return f"{self.max}/m"
        if self.window_ms == 1_000:
            return f"{self.max}/s"
        per_second = self.max * 1000 / self.window_ms
        return f"{per_second:g}/s"


@dataclass
class TaskHandle:
    """Reference to an enqueued task."""

    id: str
    queue: str
    name: str
    duplicate: bool = False


@dataclass
class QueuedTask:
    """A task as seen by a handler."""

    id: str
    queue: str
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    attempt: int = 1


@dataclass
class WorkerRegistration:
    queue: str
    task_name: str
    handler: Callable[[QueuedTask], Any]
    concurrency: int
    rate_limit: Optional[RateLimit]
    max_attempts: int


class QueueService:
    """
    Named queues with idempotent enqueue, recurring schedules and workers.

    Usage:
        queue_service = QueueService(celery_app)
        queue_service.initialize()
        queue_service.register_worker(JOB_ALERT_QUEUE, "process_job_alerts", handler)
        queue_service.enqueue(EMAIL_QUEUE, "send_job_alert_notification", payload)
    """

    IDEMPOTENCY_PREFIX = "queue:idempotency:"
    TASK_KEY_PREFIX = "queue:task-key:"
    DEAD_LETTER_PREFIX = "queue:dead:"

    def __init__(
        self,
        celery_app: Celery,
        redis_client: Optional[redis.Redis] = None,
        *,
        max_attempts: Optional[int] = None,
        backoff_base_seconds: Optional[float] = None,
        dead_letter_max: Optional[int] = None,
        idempotency_ttl_seconds: Optional[int] = None,
    ):
        self.celery_app = celery_app
        self.redis = redis_client or redis.Redis.from_url(
            settings.redis_url, decode_responses=True
        )
        self.max_attempts = max_attempts or settings.queue_max_attempts
        self.backoff_base_seconds = (
            backoff_base_seconds
            if backoff_base_seconds is not None
            else settings.queue_backoff_base_seconds
        )
        self.dead_letter_max = dead_letter_max or settings.queue_dead_letter_max
        self.idempotency_ttl_seconds = (
            idempotency_ttl_seconds or settings.queue_idempotency_ttl_seconds
        )
        self.workers: Dict[str, WorkerRegistration] = {}
        self.queue_concurrency: Dict[str, int] = {}
        self._initialized = False

    # ─── Lifecycle ───────────────────────────────────────────────

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        """
        Verify the broker and Redis are reachable.

        Raises QueueUnavailableError if either is down.
        """
        if self._initialized:
            logger.info("queue_service_already_initialized")
            return

        try:
            self.redis.ping()
            with self.celery_app.connection_for_write() as conn:
                conn.ensure_connection(max_retries=settings.queue_connect_retries)
        except Exception as exc:
            logger.error("queue_service_initialize_failed", error=str(exc))
            raise QueueUnavailableError(f"Queue backend unreachable: {exc}") from exc

        self._initialized = True
        logger.info("queue_service_initialized", queues=list(QUEUE_NAMES))

    def shutdown(self) -> None:
        """Release connections. Registrations are dropped."""
        logger.info("queue_service_shutting_down")
        try:
            self.redis.close()
        finally:
            self.celery_app.close()
            self.workers.clear()
            self.queue_concurrency.clear()
            self._initialized = False
        logger.info("queue_service_shutdown_complete")

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise QueueNotInitializedError("QueueService.initialize() has not succeeded")

    # ─── Producing ───────────────────────────────────────────────

    def enqueue(
        self,
        queue_name: str,
        task_name: str,
        payload: Dict[str, Any],
        *,
        idempotency_key: Optional[str] = None,
        priority: Optional[int] = None,
        countdown: Optional[float] = None,
    ) -> TaskHandle:
        """
        Add a task to a queue.

        With an idempotency_key, a second enqueue while the first task is
        still pending (or retrying) is a no-op that returns a duplicate handle.
        """
        self._require_initialized()
        task_id = str(uuid.uuid4())

        if idempotency_key:
            claimed = self.redis.set(
                self.IDEMPOTENCY_PREFIX + idempotency_key,
                task_id,
                nx=True,
                ex=self.idempotency_ttl_seconds,
            )
            if not claimed:
                existing_id = self.redis.get(self.IDEMPOTENCY_PREFIX + idempotency_key)
                logger.info(
                    "task_enqueue_deduplicated",
                    queue=queue_name,
                    task=task_name,
                    idempotency_key=idempotency_key,
                )
                return TaskHandle(
                    id=existing_id or task_id,
                    queue=queue_name,
                    name=task_name,
                    duplicate=True,
                )
            self.redis.set(
                self.TASK_KEY_PREFIX + task_id,
                idempotency_key,
                ex=self.idempotency_ttl_seconds,
            )

        options: Dict[str, Any] = {"queue": queue_name, "task_id": task_id}
        if priority is not None:
            options["priority"] = priority
        if countdown is not None:
            options["countdown"] = countdown

        try:
            self.celery_app.send_task(task_name, kwargs=payload, **options)
        except Exception:
            if idempotency_key:
                self._release_idempotency(task_id)
            raise

        logger.info(
            "task_enqueued",
            queue=queue_name,
            task=task_name,
            task_id=task_id,
            priority=priority,
        )
        return TaskHandle(id=task_id, queue=queue_name, name=task_name)

    def schedule(
        self,
        queue_name: str,
        task_name: str,
        payload: Dict[str, Any],
        *,
        pattern: str,
        idempotency_key: str,
    ) -> bool:
        """
        Register a recurring task fired by Beat on a cron pattern.

        Entries are keyed by idempotency_key, so registering the same
        schedule again replaces it instead of adding a second one.
        Returns True if the key was new.
        """
        self._require_initialized()
        entry = {
            "task": task_name,
            "schedule": crontab_from_pattern(pattern),
            "kwargs": dict(payload),
            "options": {"queue": queue_name},
        }

        beat_schedule = dict(self.celery_app.conf.beat_schedule or {})
        is_new = idempotency_key not in beat_schedule
        beat_schedule[idempotency_key] = entry
        self.celery_app.conf.beat_schedule = beat_schedule

        logger.info(
            "task_scheduled",
            queue=queue_name,
            task=task_name,
            pattern=pattern,
            idempotency_key=idempotency_key,
            replaced=not is_new,
        )
        return is_new

    # ─── Consuming ───────────────────────────────────────────────

    def register_worker(
        self,
        queue_name: str,
        task_name: str,
        handler: Callable[[QueuedTask], Any],
        *,
        concurrency: int = 5,
        rate_limit: Optional[RateLimit] = None,
        max_attempts: Optional[int] = None,
    ) -> WorkerRegistration:
        """
        Bind a handler to a task name on a queue.

        The handler receives a QueuedTask and may be sync or async. At most
        `concurrency` executions run per worker process for the queue, and
        at most rate_limit.max start per window.
        """
        self._require_initialized()

        if task_name in self.workers:
            logger.warning("worker_already_registered", queue=queue_name, task=task_name)
            return self.workers[task_name]

        registration = WorkerRegistration(
            queue=queue_name,
            task_name=task_name,
            handler=handler,
            concurrency=concurrency,
            rate_limit=rate_limit,
            max_attempts=max_attempts or self.max_attempts,
        )
        service = self

        @self.celery_app.task(
            name=task_name,
            bind=True,
            shared=False,
            queue=queue_name,
            acks_late=True,
            max_retries=registration.max_attempts - 1,
            rate_limit=rate_limit.to_celery() if rate_limit else None,
        )
        def _run(celery_task, **payload):
            task = QueuedTask(
                id=celery_task.request.id,
                queue=queue_name,
                name=task_name,
                payload=payload,
                attempt=celery_task.request.retries + 1,
            )
            return service.execute(
                registration,
                task,
                retry=lambda exc, countdown: celery_task.retry(exc=exc, countdown=countdown),
            )

        self.workers[task_name] = registration
        self.queue_concurrency[queue_name] = max(
            concurrency, self.queue_concurrency.get(queue_name, 0)
        )
        logger.info(
            "worker_registered",
            queue=queue_name,
            task=task_name,
            concurrency=concurrency,
            rate_limit=rate_limit.to_celery() if rate_limit else None,
        )
        return registration

    def execute(
        self,
        registration: WorkerRegistration,
        task: QueuedTask,
        retry: Callable[[Exception, float], Exception],
    ) -> Any:
        """
        Run a handler once, reporting the outcome.

        On failure either schedules a retry (retry() raises Celery's Retry)
        or dead-letters the task and re-raises.
        """
        bind_task_context(
            queue=task.queue, task=task.name, task_id=task.id, attempt=task.attempt
        )
        started = time.monotonic()

        try:
            try:
                if inspect.iscoroutinefunction(registration.handler):
                    result = run_async(registration.handler(task))
                else:
                    result = registration.handler(task)
            except Exception as exc:
                countdown = self.handle_failure(registration, task, exc)
                if countdown is None:
                    raise
                raise retry(exc, countdown)

            self._release_idempotency(task.id)
            logger.info("task_completed", duration_ms=int((time.monotonic() - started) * 1000))
            return result
        finally:
            clear_task_context()

    def handle_failure(
        self,
        registration: WorkerRegistration,
        task: QueuedTask,
        exc: Exception,
    ) -> Optional[float]:
        """
        Decide what happens to a failed attempt.

        Returns the retry delay in seconds, or None once the task has used
        all its attempts and was moved to the dead-letter list.
        """
        if task.attempt < registration.max_attempts:
            delay = self.backoff_delay(task.attempt)
            logger.warning(
                "task_failed_retrying",
                queue=task.queue,
                task=task.name,
                task_id=task.id,
                attempt=task.attempt,
                max_attempts=registration.max_attempts,
                retry_in_seconds=delay,
                error=str(exc),
            )
            return delay

        self._dead_letter(task, exc)
        return None

    def backoff_delay(self, attempt: int) -> float:
        """Exponential backoff: base, 2*base, 4*base, ..."""
        return self.backoff_base_seconds * (2 ** (attempt - 1))

    def _dead_letter(self, task: QueuedTask, exc: Exception) -> None:
        key = self.DEAD_LETTER_PREFIX + task.queue
        record = {
            "task_id": task.id,
            "task": task.name,
            "payload": task.payload,
            "attempts": task.attempt,
            "error": f"{type(exc).__name__}: {exc}",
            "failed_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            self.redis.lpush(key, json.dumps(record, default=str))
            self.redis.ltrim(key, 0, self.dead_letter_max - 1)
        finally:
            self._release_idempotency(task.id)
        logger.error(
            "task_dead_lettered",
            queue=task.queue,
            task=task.name,
            task_id=task.id,
            attempts=task.attempt,
            error=str(exc),
        )

    def _release_idempotency(self, task_id: str) -> None:
        key = self.redis.get(self.TASK_KEY_PREFIX + task_id)
        if key:
            self.redis.delete(self.IDEMPOTENCY_PREFIX + key, self.TASK_KEY_PREFIX + task_id)

    # ─── Introspection ───────────────────────────────────────────

    def dead_letters(self, queue_name: str, limit: int = 50) -> List[dict]:
        """Most recent dead-lettered tasks for a queue, newest first."""
        raw = self.redis.lrange(self.DEAD_LETTER_PREFIX + queue_name, 0, limit - 1)
        return [json.loads(item) for item in raw]

    def get_queue_metrics(self, queue_name: str) -> dict:
        """Pending (broker lists across priority steps) and dead-lettered counts."""
        pending = sum(
            self.redis.llen(broker_queue_key(queue_name, step))
            for step in BROKER_PRIORITY_STEPS
        )
        dead = self.redis.llen(self.DEAD_LETTER_PREFIX + queue_name)
        return {"queue": queue_name, "pending": pending, "dead": dead}

    def worker_argv(self, queue_name: str) -> List[str]:
        """Celery CLI arguments for a worker consuming one queue."""
        if queue_name not in self.queue_concurrency:
            raise ValueError(f"No worker registered for queue {queue_name!r}")
        return [
            "worker",
            "--queues",
            queue_name,
            "--concurrency",
            str(self.queue_concurrency[queue_name]),
            "--hostname",
            f"{queue_name}@%h",
            "--loglevel",
            "INFO",
        ]

    def start_worker(self, queue_name: str) -> None:
        """Run a blocking worker process for one queue."""
        self._require_initialized()
        self.celery_app.worker_main(argv=self.worker_argv(queue_name))
