"""Celery job definitions."""

from burstlet.jobs.generation import (
    dispatch_generation_job,
    execute_generation_job,
    run_generation_job_task,
)

__all__ = [
    "dispatch_generation_job",
    "execute_generation_job",
    "run_generation_job_task",
]
