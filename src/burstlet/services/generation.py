"""Generation service.

Owns the generation job table: creates jobs on submission, serves snapshots,
applies status transitions and cancels. Only this service writes job status.
"""

import json
import math
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from burstlet.adapters.factory import get_provider
from burstlet.adapters.hailuoai import HailuoAIProvider
from burstlet.adapters.minimax import MiniMaxProvider
from burstlet.adapters.openai import OpenAIProvider
from burstlet.config import settings
from burstlet.db.models import ContentModel, GenerationJobModel
from burstlet.domain.enums import JOB_CAPABILITY, ContentStatus, JobStatus, JobType
from burstlet.domain.lifecycle import can_transition, ensure_transition
from burstlet.domain.models import (
    CancelResponse,
    CostEstimate,
    GenerationJob,
    JobError,
    JobList,
    JobResult,
    UsageStats,
)
from burstlet.domain.requests import (
    BlogGenerationRequest,
    GenerationRequest,
    SocialGenerationRequest,
    VideoGenerationRequest,
    parse_request,
)
from burstlet.errors import GenerationError, JobNotFoundError, TransportError
from burstlet.logging import get_logger
from burstlet.services.billing import BillingService, credits_for_cost

logger = get_logger(__name__)

# Enqueues a job for execution and returns the task id
Dispatcher = Callable[[str], str | None]

# Output tokens budgeted per social post
SOCIAL_TOKENS_PER_POST = 300


def to_schema(job: GenerationJobModel) -> GenerationJob:
    """Convert an ORM job into the API snapshot."""
    return GenerationJob(
        id=job.id,
        type=JobType(job.type),
        status=JobStatus(job.status),
        params=job.params or {},
        result=JobResult.model_validate(job.result) if job.result else None,
        error=JobError.model_validate(job.error) if job.error else None,
        provider=job.provider,
        created_at=job.created_at,
        updated_at=job.updated_at,
        completed_at=job.completed_at,
    )


class GenerationService:
    """Generation job operations for one database session."""

    def __init__(
        self,
        session: Session,
        dispatcher: Dispatcher | None = None,
        billing: BillingService | None = None,
    ) -> None:
        self.session = session
        self.dispatcher = dispatcher
        self.billing = billing or BillingService(session)

    # -------------------------------------------------------------------------
    # Submission
    # -------------------------------------------------------------------------

    def submit(
        self,
        job_type: JobType | str,
        request: GenerationRequest | dict[str, Any],
        user_id: str,
    ) -> GenerationJob:
        """Validate, check provider and quota, then create and dispatch a PENDING job.

        Every rejection is raised before the job row exists.
        """
        job_type = JobType(job_type)
        request = parse_request(job_type, request)

        provider = get_provider(JOB_CAPABILITY[job_type])
        self.billing.check_quota(user_id, job_type)
        estimate = self.estimate_cost(job_type, request)

        job = GenerationJobModel(
            user_id=user_id,
            type=str(job_type),
            status=str(JobStatus.PENDING),
            params=request.model_dump(mode="json"),
            provider=provider.name,
            cost_estimate=estimate.estimated_cost,
        )
        self.session.add(job)
        self.session.commit()
        self.session.refresh(job)

        logger.info(
            "generation_job_submitted",
            job_id=job.id,
            job_type=str(job_type),
            provider=provider.name,
            user_id=user_id,
        )

        if self.dispatcher is not None:
            self._dispatch(job)

        return to_schema(job)

    def _dispatch(self, job: GenerationJobModel) -> None:
        try:
            task_id = self.dispatcher(job.id)  # type: ignore[misc]
        except Exception as e:
            logger.error("generation_job_dispatch_failed", job_id=job.id, error=str(e))
            self.apply_transition(
                job,
                JobStatus.FAILED,
                error=JobError(message="Could not queue job", code="NETWORK_ERROR", provider="queue"),
            )
            raise TransportError("Could not queue generation job", provider="queue") from e

        job.celery_task_id = task_id
        self.session.commit()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _load(self, job_id: str, user_id: str | None = None) -> GenerationJobModel:
        job = self.session.get(GenerationJobModel, job_id)
        if job is None or (user_id is not None and job.user_id != user_id):
            raise JobNotFoundError(f"Generation job not found: {job_id}", details={"job_id": job_id})
        return job

    def get_job(self, job_id: str, user_id: str | None = None) -> GenerationJob:
        return to_schema(self._load(job_id, user_id))

    def list_jobs(
        self,
        user_id: str,
        job_type: JobType | None = None,
        status: JobStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> JobList:
        query = select(GenerationJobModel).where(GenerationJobModel.user_id == user_id)
        if job_type is not None:
            query = query.where(GenerationJobModel.type == str(job_type))
        if status is not None:
            query = query.where(GenerationJobModel.status == str(status))

        total = self.session.execute(
            select(func.count()).select_from(query.subquery())
        ).scalar_one()
        jobs = self.session.execute(
            query.order_by(GenerationJobModel.created_at.desc()).limit(limit).offset(offset)
        ).scalars().all()

        return JobList(jobs=[to_schema(j) for j in jobs], total=total)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def cancel_job(self, job_id: str, user_id: str | None = None) -> CancelResponse:
        """Move an active job to CANCELED.

        Raises:
            JobNotFoundError: No such job for this user.
            InvalidTransitionError: The job already reached a terminal state.
        """
        job = self._load(job_id, user_id)
        ensure_transition(job.status, JobStatus.CANCELED)

        job.status = str(JobStatus.CANCELED)
        job.completed_at = datetime.now(timezone.utc)
        self.session.commit()
        self.session.refresh(job)

        logger.info("generation_job_canceled", job_id=job.id)
        return CancelResponse(message="Generation job canceled", job=to_schema(job))

    def apply_transition(
        self,
        job: GenerationJobModel,
        status: JobStatus,
        *,
        result: JobResult | None = None,
        error: JobError | None = None,
    ) -> bool:
        """Write a forward status change; a non-forward write is logged and ignored.

        The row is re-read first so a cancel committed by another session is
        seen before a late result is written.
        """
        self.session.refresh(job)
        if not can_transition(job.status, status):
            logger.info(
                "job_transition_ignored",
                job_id=job.id,
                current=job.status,
                requested=str(status),
            )
            return False

        job.status = str(status)
        if result is not None:
            job.result = result.model_dump(mode="json")
            job.cost_estimate = result.cost_estimate
        if error is not None:
            job.error = error.model_dump(mode="json")
        if status in (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELED):
            job.completed_at = datetime.now(timezone.utc)
        self.session.commit()

        logger.info("job_status_changed", job_id=job.id, status=str(status))
        return True

    def record_provider_job(self, job: GenerationJobModel, provider_job_id: str) -> None:
        job.provider_job_id = provider_job_id
        self.session.commit()

    def fail_job(self, job: GenerationJobModel, exc: GenerationError) -> bool:
        """Write FAILED with the error's message, code and provider."""
        return self.apply_transition(
            job,
            JobStatus.FAILED,
            error=JobError(
                message=exc.message,
                code=str(exc.code),
                provider=getattr(exc, "provider", None) or job.provider,
            ),
        )

    def create_content_draft(self, job: GenerationJobModel) -> ContentModel:
        """Create the draft content record for a completed job."""
        params = job.params or {}
        result = job.result or {}
        content = result.get("content") or {}

        if job.type == JobType.BLOG:
            title = content.get("title") or params.get("topic", "")
            body = content.get("content")
            platforms: list[str] = []
        elif job.type == JobType.SOCIAL:
            title = params.get("topic", "")
            body = json.dumps(content.get("posts", []))
            platforms = list(params.get("platforms", []))
        else:
            title = params.get("prompt", "")
            body = params.get("prompt")
            platforms = []

        urls = result.get("urls") or []
        record = ContentModel(
            user_id=job.user_id,
            job_id=job.id,
            title=title[:500] or "Untitled",
            type=job.type,
            status=str(ContentStatus.DRAFT),
            body=body,
            media_url=urls[0] if urls else None,
            thumbnail_url=result.get("thumbnail_url"),
            platforms=platforms,
            metadata_={"cost_estimate": result.get("cost_estimate", 0.0)},
        )
        self.session.add(record)
        self.session.commit()
        return record

    # -------------------------------------------------------------------------
    # Pricing and usage
    # -------------------------------------------------------------------------

    def estimate_cost(
        self,
        job_type: JobType | str,
        params: GenerationRequest | dict[str, Any],
    ) -> CostEstimate:
        """Approximate cost of a request from the vendors' published rates."""
        job_type = JobType(job_type)
        request = parse_request(job_type, params)
        breakdown: dict[str, float] = {}

        if isinstance(request, VideoGenerationRequest):
            breakdown["video"] = HailuoAIProvider.estimate_video_cost(
                request.duration, request.quality
            )
            if request.include_audio:
                breakdown.update(_audio_breakdown(request))
        elif isinstance(request, BlogGenerationRequest):
            tokens = OpenAIProvider.estimate_tokens(request.topic + " ".join(request.keywords))
            # ~4/3 tokens per word of output
            tokens += math.ceil(request.length.target_words * 4 / 3)
            breakdown["text"] = OpenAIProvider.estimate_text_cost(tokens, settings.openai_model)
        elif isinstance(request, SocialGenerationRequest):
            tokens = OpenAIProvider.estimate_tokens(request.topic)
            tokens += SOCIAL_TOKENS_PER_POST * len(request.platforms)
            breakdown["text"] = OpenAIProvider.estimate_text_cost(tokens, settings.openai_model)

        total = round(sum(breakdown.values()), 4)
        return CostEstimate(
            estimated_cost=total,
            credits_required=credits_for_cost(total),
            breakdown=breakdown,
        )

    def usage(self, user_id: str) -> UsageStats:
        return self.billing.usage_summary(user_id)


def _audio_breakdown(request: VideoGenerationRequest) -> dict[str, float]:
    options = request.audio_options
    breakdown: dict[str, float] = {}

    voiceover_text = request.prompt
    if options and options.voiceover and options.voiceover.text:
        voiceover_text = options.voiceover.text
    breakdown["voiceover"] = MiniMaxProvider.estimate_voiceover_cost(voiceover_text)

    if options and options.background_music:
        breakdown["music"] = MiniMaxProvider.estimate_music_cost(request.duration)
    if options and options.sound_effects:
        breakdown["sound_effects"] = MiniMaxProvider.estimate_sound_effect_cost(
            MiniMaxProvider.SOUND_EFFECT_SECONDS
        )
    return breakdown
