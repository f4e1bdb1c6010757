"""Generation job execution.

A queued job is executed by ``run_generation_job_task``: the job moves to
PROCESSING, the configured provider produces the content, and the job ends
COMPLETED (with a draft Content record) or FAILED. Status writes go through
GenerationService.apply_transition, so a job canceled while it runs keeps its
CANCELED status.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import asdict
from typing import Any

import structlog

from burstlet.adapters.base import (
    MusicRequest,
    ProviderAdapter,
    SoundEffectRequest,
    VendorJobState,
    VoiceoverRequest,
)
from burstlet.adapters.factory import get_provider
from burstlet.adapters.hailuoai import HailuoAIProvider
from burstlet.adapters.minimax import MiniMaxProvider
from burstlet.config import settings
from burstlet.db.models import GenerationJobModel
from burstlet.db.session import get_session_context
from burstlet.domain.enums import Capability, JobStatus
from burstlet.domain.lifecycle import is_terminal
from burstlet.domain.models import JobResult
from burstlet.domain.requests import (
    BlogGenerationRequest,
    SocialGenerationRequest,
    VideoGenerationRequest,
    parse_request,
)
from burstlet.errors import GenerationError, JobNotFoundError, ProviderError
from burstlet.logging import get_logger
from burstlet.services.generation import GenerationService
from burstlet.utils import run_async
from burstlet.worker import celery_app

logger = get_logger(__name__)

ProviderFactory = Callable[[Capability], ProviderAdapter]


class JobCanceled(Exception):
    """The job was canceled while its provider was still working."""


async def execute_generation_job(
    job_id: str,
    provider_factory: ProviderFactory = get_provider,
    poll_interval: float | None = None,
    max_poll_attempts: int | None = None,
) -> dict[str, Any]:
    """Run one generation job to a terminal state.

    Args:
        job_id: Id of the job to execute.
        provider_factory: Resolves the adapter for a capability.
        poll_interval: Seconds between vendor status checks for video jobs.
        max_poll_attempts: Vendor status checks before the job times out.

    Returns:
        Dict with the job id and its final status.
    """
    interval = settings.provider_poll_interval_seconds if poll_interval is None else poll_interval
    attempts = settings.provider_max_poll_attempts if max_poll_attempts is None else max_poll_attempts

    with get_session_context() as session:
        service = GenerationService(session)
        job = session.get(GenerationJobModel, job_id)
        if job is None:
            logger.error("generation_job_missing", job_id=job_id)
            raise JobNotFoundError(f"Generation job not found: {job_id}")

        if is_terminal(job.status):
            logger.info("generation_job_already_done", job_id=job_id, status=job.status)
            return {"job_id": job_id, "status": job.status, "skipped": True}

        service.apply_transition(job, JobStatus.PROCESSING)
        if is_terminal(job.status):
            return {"job_id": job_id, "status": job.status, "skipped": True}
        logger.info("generation_job_started", job_id=job_id, job_type=job.type)

        try:
            request = parse_request(job.type, job.params)
            if isinstance(request, VideoGenerationRequest):
                result = await _run_video(
                    service, job, request, provider_factory, interval, attempts
                )
            elif isinstance(request, BlogGenerationRequest):
                result = await _run_blog(request, provider_factory)
            else:
                result = await _run_social(request, provider_factory)
        except JobCanceled:
            logger.info("generation_job_canceled_while_running", job_id=job_id)
            return {"job_id": job_id, "status": job.status}
        except GenerationError as e:
            logger.error(
                "generation_job_failed",
                job_id=job_id,
                code=str(e.code),
                error=e.message,
            )
            service.fail_job(job, e)
            return {"job_id": job_id, "status": job.status}
        except Exception as e:
            logger.exception("generation_job_crashed", job_id=job_id)
            service.fail_job(job, GenerationError(f"Unexpected error: {e}"))
            raise

        if service.apply_transition(job, JobStatus.COMPLETED, result=result):
            service.create_content_draft(job)
            logger.info(
                "generation_job_completed",
                job_id=job_id,
                cost_estimate=result.cost_estimate,
            )

        return {"job_id": job_id, "status": job.status}


async def _run_video(
    service: GenerationService,
    job: GenerationJobModel,
    request: VideoGenerationRequest,
    provider_factory: ProviderFactory,
    interval: float,
    max_attempts: int,
) -> JobResult:
    provider = provider_factory(Capability.VIDEO)
    status = await provider.generate_video(request)
    service.record_provider_job(job, status.job_id)

    attempt = 0
    while status.state not in (VendorJobState.COMPLETED, VendorJobState.FAILED):
        if attempt >= max_attempts:
            raise ProviderError(
                f"Video generation timed out after {max_attempts} status checks",
                provider=provider.name,
            )
        attempt += 1
        await asyncio.sleep(interval)

        service.session.refresh(job)
        if job.status == JobStatus.CANCELED:
            raise JobCanceled(job.id)

        try:
            status = await provider.get_video_status(status.job_id)
        except GenerationError as e:
            if not e.retryable:
                raise
            logger.warning(
                "provider_poll_error",
                job_id=job.id,
                vendor_job_id=status.job_id,
                attempt=attempt,
                error=e.message,
            )

    if status.state == VendorJobState.FAILED:
        raise ProviderError(
            status.error_message or "Video generation failed",
            provider=provider.name,
            payload=status.raw,
        )
    if not status.video_url:
        raise ProviderError(
            "Generation completed but no video URL found",
            provider=provider.name,
            payload=status.raw,
        )

    urls = [status.video_url]
    cost = HailuoAIProvider.estimate_video_cost(request.duration, request.quality)
    warnings: list[str] = []
    content: dict[str, Any] | None = None

    if request.include_audio:
        audio_tracks, audio_cost, warnings = await _run_audio(request, provider_factory)
        urls.extend(track["url"] for track in audio_tracks)
        cost += audio_cost
        content = {"audio_tracks": audio_tracks}

    return JobResult(
        urls=urls,
        thumbnail_url=status.thumbnail_url,
        content=content,
        cost_estimate=round(cost, 4),
        duration_seconds=status.duration_seconds or float(request.duration),
        warnings=warnings,
    )


async def _run_audio(
    request: VideoGenerationRequest,
    provider_factory: ProviderFactory,
) -> tuple[list[dict[str, Any]], float, list[str]]:
    """Generate the audio tracks a video asked for.

    Audio failures become warnings on the result; the video itself succeeded.
    """
    try:
        provider = provider_factory(Capability.AUDIO)
    except GenerationError as e:
        logger.warning("audio_provider_unavailable", error=e.message)
        return [], 0.0, [f"Audio skipped: {e.message}"]

    options = request.audio_options
    voiceover = options.voiceover if options else None
    steps: list[tuple[str, Callable[[Any], Awaitable[Any]], Any]] = [
        (
            "voiceover",
            provider.generate_voiceover,
            VoiceoverRequest(
                text=(voiceover.text if voiceover and voiceover.text else request.prompt),
                voice_id=voiceover.voice if voiceover else None,
                language=voiceover.language if voiceover else "en",
            ),
        )
    ]
    if options and options.background_music:
        steps.append(
            (
                "music",
                provider.generate_music,
                MusicRequest(
                    prompt=request.prompt,
                    duration_seconds=request.duration,
                    style=options.background_music.style,
                    mood=options.background_music.mood,
                ),
            )
        )
    if options and options.sound_effects:
        steps.append(
            (
                "sound_effects",
                provider.generate_sound_effect,
                SoundEffectRequest(
                    description=request.prompt,
                    duration_seconds=MiniMaxProvider.SOUND_EFFECT_SECONDS,
                ),
            )
        )

    tracks: list[dict[str, Any]] = []
    warnings: list[str] = []
    cost = 0.0
    for kind, generate, track_request in steps:
        try:
            audio = await generate(track_request)
        except GenerationError as e:
            logger.warning("audio_track_failed", kind=kind, error=e.message)
            warnings.append(f"{kind} failed: {e.message}")
            continue
        tracks.append(
            {
                "kind": kind,
                "url": audio.audio_url,
                "duration_seconds": audio.duration_seconds,
                "format": audio.format,
            }
        )
        cost += audio.cost_estimate
    return tracks, cost, warnings


async def _run_blog(request: BlogGenerationRequest, provider_factory: ProviderFactory) -> JobResult:
    provider = provider_factory(Capability.TEXT)
    post = await provider.generate_blog(request)
    content = asdict(post)
    content.pop("usage")
    content.pop("cost_estimate")
    return JobResult(content=content, cost_estimate=post.cost_estimate)


async def _run_social(request: SocialGenerationRequest, provider_factory: ProviderFactory) -> JobResult:
    provider = provider_factory(Capability.TEXT)
    result = await provider.generate_social_posts(request)
    return JobResult(
        content={"posts": [asdict(post) for post in result.posts]},
        cost_estimate=result.cost_estimate,
    )


# =============================================================================
# Celery task
# =============================================================================


@celery_app.task(
    bind=True,
    name="generation.run_job",
    max_retries=0,
)
def run_generation_job_task(self: Any, job_id: str) -> dict[str, Any]:
    """Execute one generation job inside the worker."""
    with structlog.contextvars.bound_contextvars(task_id=self.request.id):
        logger.info("generation_task_received", job_id=job_id)
        return run_async(execute_generation_job(job_id))


def dispatch_generation_job(job_id: str) -> str:
    """Enqueue ``job_id`` for execution and return the Celery task id."""
    return run_generation_job_task.delay(job_id).id


__all__ = [
    "dispatch_generation_job",
    "execute_generation_job",
    "run_generation_job_task",
]
