"""Domain types: enums, lifecycle rules, request schemas and job snapshots."""

from burstlet.domain.enums import Capability, JobStatus, JobType
from burstlet.domain.lifecycle import can_transition, is_terminal, status_rank
from burstlet.domain.models import GenerationJob, JobError, JobResult
from burstlet.domain.requests import (
    BlogGenerationRequest,
    SocialGenerationRequest,
    VideoGenerationRequest,
    parse_request,
)

__all__ = [
    "BlogGenerationRequest",
    "Capability",
    "GenerationJob",
    "JobError",
    "JobResult",
    "JobStatus",
    "JobType",
    "SocialGenerationRequest",
    "VideoGenerationRequest",
    "can_transition",
    "is_terminal",
    "parse_request",
    "status_rank",
]
