"""Generation endpoints: submit, inspect and cancel generation jobs."""

from typing import Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from burstlet.adapters.factory import configured_provider_name, create_provider, get_provider
from burstlet.adapters.minimax import MiniMaxProvider
from burstlet.api.deps import GenerationServiceDep, UserIdDep
from burstlet.domain.enums import Capability, JobStatus, JobType
from burstlet.domain.models import CancelResponse, CostEstimate, GenerationJob, JobList, UsageStats
from burstlet.domain.requests import (
    BlogGenerationRequest,
    SocialGenerationRequest,
    VideoGenerationRequest,
)
from burstlet.logging import get_logger

router = APIRouter(prefix="/generation", tags=["Generation"])
logger = get_logger(__name__)


# =============================================================================
# Request / Response Models
# =============================================================================


class EstimateCostRequest(BaseModel):
    """Request to price a generation before submitting it."""

    type: JobType
    params: dict[str, Any] = Field(default_factory=dict)


class AudioCapabilitiesResponse(BaseModel):
    """What the configured audio provider can do."""

    provider: str
    supported: bool
    configured: bool
    features: list[str]
    pricing: dict[str, float]


class VoicesResponse(BaseModel):
    voices: list[dict[str, Any]]


# =============================================================================
# Submission
# =============================================================================


@router.post(
    "/video",
    response_model=GenerationJob,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Generate a video",
)
async def generate_video(
    request: VideoGenerationRequest,
    service: GenerationServiceDep,
    user_id: UserIdDep,
) -> GenerationJob:
    """Queue a video generation job and return it in PENDING state."""
    return service.submit(JobType.VIDEO, request, user_id)


@router.post(
    "/blog",
    response_model=GenerationJob,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Generate a blog post",
)
async def generate_blog(
    request: BlogGenerationRequest,
    service: GenerationServiceDep,
    user_id: UserIdDep,
) -> GenerationJob:
    return service.submit(JobType.BLOG, request, user_id)


@router.post(
    "/social",
    response_model=GenerationJob,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Generate social media posts",
)
async def generate_social(
    request: SocialGenerationRequest,
    service: GenerationServiceDep,
    user_id: UserIdDep,
) -> GenerationJob:
    return service.submit(JobType.SOCIAL, request, user_id)


# =============================================================================
# Jobs
# =============================================================================


@router.get(
    "/jobs",
    response_model=JobList,
    summary="List generation jobs",
)
async def list_jobs(
    service: GenerationServiceDep,
    user_id: UserIdDep,
    type: JobType | None = Query(None, description="Filter by job type"),
    status_filter: JobStatus | None = Query(None, alias="status", description="Filter by status"),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
) -> JobList:
    return service.list_jobs(
        user_id,
        job_type=type,
        status=status_filter,
        limit=limit,
        offset=offset,
    )


@router.get(
    "/jobs/{job_id}",
    response_model=GenerationJob,
    summary="Get a generation job",
    description="Current snapshot of a job. Clients poll this while the job is active.",
)
async def get_job(
    job_id: str,
    service: GenerationServiceDep,
    user_id: UserIdDep,
) -> GenerationJob:
    return service.get_job(job_id, user_id)


@router.post(
    "/jobs/{job_id}/cancel",
    response_model=CancelResponse,
    summary="Cancel a generation job",
    description=(
        "Marks an active job CANCELED. Work already running at the vendor is not "
        "guaranteed to stop, but its result is discarded."
    ),
)
async def cancel_job(
    job_id: str,
    service: GenerationServiceDep,
    user_id: UserIdDep,
) -> CancelResponse:
    return service.cancel_job(job_id, user_id)


# =============================================================================
# Pricing, usage and audio
# =============================================================================


@router.post(
    "/estimate-cost",
    response_model=CostEstimate,
    summary="Estimate the cost of a generation",
)
async def estimate_cost(
    request: EstimateCostRequest,
    service: GenerationServiceDep,
) -> CostEstimate:
    return service.estimate_cost(request.type, request.params)


@router.get(
    "/usage",
    response_model=UsageStats,
    summary="Generation usage for the current period",
)
async def get_usage(service: GenerationServiceDep, user_id: UserIdDep) -> UsageStats:
    return service.usage(user_id)


@router.get(
    "/audio/capabilities",
    response_model=AudioCapabilitiesResponse,
    summary="Audio generation capabilities",
)
async def audio_capabilities() -> AudioCapabilitiesResponse:
    provider = create_provider(configured_provider_name(Capability.AUDIO))
    supported = provider.supports(Capability.AUDIO)
    configured = not provider.requires_api_key or bool(provider.api_key)

    return AudioCapabilitiesResponse(
        provider=provider.name,
        supported=supported,
        configured=configured,
        features=["voiceover", "background_music", "sound_effects"] if supported else [],
        pricing={
            "voiceover_per_1k_chars": MiniMaxProvider.VOICEOVER_COST_PER_1K_CHARS,
            "music_per_second": MiniMaxProvider.MUSIC_COST_PER_SECOND,
            "sound_effect_per_second": MiniMaxProvider.SFX_COST_PER_SECOND,
        },
    )


@router.get(
    "/audio/voices",
    response_model=VoicesResponse,
    summary="Voices available for voiceover",
)
async def audio_voices() -> VoicesResponse:
    provider = get_provider(Capability.AUDIO)
    return VoicesResponse(voices=await provider.list_voices())
