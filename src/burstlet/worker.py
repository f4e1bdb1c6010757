"""Celery application that executes generation jobs."""

from typing import Any

from celery import Celery
from celery.signals import task_failure, worker_ready

from burstlet.config import settings
from burstlet.logging import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)

GENERATION_QUEUE = "generation"

celery_app = Celery(
    "burstlet",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["burstlet.jobs.generation"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Vendor polling is bounded by PROVIDER_MAX_POLL_ATTEMPTS x interval
    task_time_limit=900,
    task_soft_time_limit=840,
    task_default_queue=GENERATION_QUEUE,
    task_routes={"generation.*": {"queue": GENERATION_QUEUE}},
    worker_prefetch_multiplier=1,
    worker_concurrency=4,
    result_expires=86400,
)


@worker_ready.connect
def _log_worker_ready(sender: Any = None, **kwargs: Any) -> None:
    logger.info("worker_ready", queue=GENERATION_QUEUE, hostname=getattr(sender, "hostname", None))


@task_failure.connect
def _log_task_failure(
    sender: Any = None, task_id: str | None = None, exception: BaseException | None = None, **kwargs: Any
) -> None:
    logger.error(
        "worker_task_crashed",
        task=getattr(sender, "name", None),
        task_id=task_id,
        error=str(exception),
    )
