"""HailuoAI video generation provider."""

from typing import Any, ClassVar

import httpx

from burstlet.adapters.base import ProviderAdapter, VendorJobState, VideoJobStatus
from burstlet.config import settings
from burstlet.domain.enums import Capability, VideoQuality
from burstlet.domain.requests import VideoGenerationRequest
from burstlet.errors import GenerationError, ProviderError
from burstlet.logging import get_logger

logger = get_logger(__name__)


class HailuoAIProvider(ProviderAdapter):
    """HailuoAI text-to-video provider.

    Generation is asynchronous on HailuoAI's side: submitting returns a job id
    and the worker checks its status until the video is ready.
    """

    capabilities = frozenset({Capability.VIDEO})
    default_base_url = "https://api.hailuoai.com/v1"

    COST_PER_SECOND: ClassVar[float] = 0.02
    QUALITY_MULTIPLIERS: ClassVar[dict[VideoQuality, float]] = {
        VideoQuality.DRAFT: 0.5,
        VideoQuality.STANDARD: 1.0,
        VideoQuality.HIGH: 1.5,
        VideoQuality.ULTRA: 2.5,
    }
    MAX_DURATION: ClassVar[int] = 60

    _STATES: ClassVar[dict[str, VendorJobState]] = {
        "pending": VendorJobState.PENDING,
        "queued": VendorJobState.PENDING,
        "processing": VendorJobState.PROCESSING,
        "running": VendorJobState.PROCESSING,
        "completed": VendorJobState.COMPLETED,
        "succeeded": VendorJobState.COMPLETED,
        "failed": VendorJobState.FAILED,
        "error": VendorJobState.FAILED,
    }

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        webhook_url: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            api_key=api_key or settings.hailuoai_api_key,
            base_url=base_url or settings.hailuoai_base_url,
            timeout=timeout,
            transport=transport,
        )
        self.model = model or settings.hailuoai_model
        self.webhook_url = webhook_url or settings.hailuoai_webhook_url

    @property
    def name(self) -> str:
        return "hailuoai"

    async def _generate_video(self, request: VideoGenerationRequest) -> VideoJobStatus:
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": request.prompt,
            "duration": min(request.duration, self.MAX_DURATION),
            "aspect_ratio": request.aspect_ratio,
            "quality": str(request.quality),
            "style": request.style or "realistic",
        }
        if self.webhook_url:
            payload["webhook_url"] = self.webhook_url

        logger.info(
            "hailuoai_generation_started",
            prompt_length=len(request.prompt),
            duration=payload["duration"],
            quality=payload["quality"],
        )

        data = await self._request("POST", "/generate/video", json=payload)
        status = self._parse_status(data)

        logger.info("hailuoai_generation_submitted", vendor_job_id=status.job_id)
        return status

    async def _get_video_status(self, job_id: str) -> VideoJobStatus:
        data = await self._request("GET", f"/generate/video/{job_id}")
        status = self._parse_status(data, job_id=job_id)
        logger.debug("hailuoai_poll_status", vendor_job_id=job_id, state=str(status.state))
        return status

    def _parse_status(self, data: Any, job_id: str | None = None) -> VideoJobStatus:
        if not isinstance(data, dict):
            raise ProviderError(
                "Unexpected response from HailuoAI",
                provider=self.name,
                payload=data,
            )

        vendor_id = data.get("id") or data.get("job_id") or job_id
        if not vendor_id:
            raise ProviderError(
                "No job ID returned from HailuoAI",
                provider=self.name,
                payload=data,
            )

        raw_state = str(data.get("status", "pending")).lower()
        state = self._STATES.get(raw_state)
        if state is None:
            raise ProviderError(
                f"Unknown HailuoAI job status: {raw_state}",
                provider=self.name,
                payload=data,
            )

        error_message = None
        if state == VendorJobState.FAILED:
            error = data.get("error")
            if isinstance(error, dict):
                error = error.get("message")
            error_message = str(error or data.get("failure_reason") or "Generation failed")

        return VideoJobStatus(
            job_id=str(vendor_id),
            state=state,
            video_url=data.get("video_url") or data.get("url"),
            thumbnail_url=data.get("thumbnail_url"),
            duration_seconds=data.get("duration"),
            error_message=error_message,
            raw=data,
        )

    @classmethod
    def estimate_video_cost(
        cls,
        duration_seconds: float,
        quality: VideoQuality | str = VideoQuality.STANDARD,
    ) -> float:
        """Estimated price in dollars for a video of the given length and quality."""
        multiplier = cls.QUALITY_MULTIPLIERS[VideoQuality(quality)]
        seconds = min(duration_seconds, cls.MAX_DURATION)
        return round(seconds * cls.COST_PER_SECOND * multiplier, 4)

    async def health_check(self) -> bool:
        if not self.api_key:
            return False
        try:
            await self._request("GET", "/models", timeout=10.0)
            return True
        except GenerationError:
            return False
