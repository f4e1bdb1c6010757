"""Domain models exchanged between the backend and its clients."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from burstlet.domain.enums import JobStatus, JobType
from burstlet.domain.lifecycle import is_terminal


class JobResult(BaseModel):
    """Output of a completed job."""

    urls: list[str] = Field(default_factory=list)
    thumbnail_url: str | None = None
    content: dict[str, Any] | None = None
    cost_estimate: float = 0.0
    duration_seconds: float | None = None
    warnings: list[str] = Field(default_factory=list)


class JobError(BaseModel):
    """Failure details of a failed job."""

    message: str
    code: str
    provider: str | None = None


class GenerationJob(BaseModel):
    """Snapshot of a generation job as served by the API."""

    id: str
    type: JobType
    status: JobStatus
    params: dict[str, Any] = Field(default_factory=dict)
    result: JobResult | None = None
    error: JobError | None = None
    provider: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)


class JobList(BaseModel):
    """A page of generation jobs."""

    jobs: list[GenerationJob]
    total: int


class CancelResponse(BaseModel):
    """Acknowledgment of a cancel request."""

    message: str
    job: GenerationJob


class CostEstimate(BaseModel):
    """Approximate price of a generation request."""

    estimated_cost: float
    credits_required: int
    breakdown: dict[str, float] = Field(default_factory=dict)


class UsageStats(BaseModel):
    """Generation usage for the current billing period."""

    plan: str
    period_start: datetime
    used: dict[str, int]
    limits: dict[str, int]
    credits_used: int
    credits_remaining: int
    cost_estimate: float
