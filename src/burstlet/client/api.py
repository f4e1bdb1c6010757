"""Async HTTP client for the Burstlet API."""

from typing import Any

import httpx
from pydantic import BaseModel

from burstlet.config import settings
from burstlet.domain.enums import JobStatus, JobType
from burstlet.domain.models import (
    CancelResponse,
    CostEstimate,
    GenerationJob,
    JobList,
    UsageStats,
)
from burstlet.domain.requests import parse_request
from burstlet.errors import InvalidRequestError, TransportError, error_from_response
from burstlet.logging import get_logger

logger = get_logger(__name__)

CLIENT_NAME = "burstlet-api"
DEFAULT_USER_ID = "demo-user"


class BurstletClient:
    """Thin typed wrapper over the ``/api/v1`` endpoints.

    Requests are validated locally before anything is sent, so malformed input
    raises InvalidRequestError without a network call. Backend error bodies are
    mapped back to the error type the backend raised.
    """

    def __init__(
        self,
        base_url: str | None = None,
        user_id: str = DEFAULT_USER_ID,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        self.user_id = user_id
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"X-User-Id": user_id, "Accept": "application/json"},
        )

    async def __aenter__(self) -> "BurstletClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = await self._client.request(method, url, json=json, params=params)
        except httpx.RequestError as e:
            logger.warning("api_request_failed", method=method, url=url, error=str(e))
            raise TransportError(
                f"Could not reach the Burstlet API: {e}", provider=CLIENT_NAME
            ) from e

        try:
            body = response.json() if response.content else None
        except ValueError:
            body = {"error": response.text}

        if response.is_error:
            raise error_from_response(response.status_code, body, provider=CLIENT_NAME)
        return body

    # -------------------------------------------------------------------------
    # Generation
    # -------------------------------------------------------------------------

    async def generate(
        self, job_type: JobType | str, request: BaseModel | dict[str, Any]
    ) -> GenerationJob:
        """Submit a generation request and return the queued job."""
        job_type = JobType(job_type)
        data = request.model_dump() if isinstance(request, BaseModel) else request
        parsed = parse_request(job_type, data)

        body = await self._request(
            "POST",
            f"/generation/{job_type.value}",
            json=parsed.model_dump(mode="json", exclude_none=True),
        )
        job = GenerationJob.model_validate(body)
        logger.info("generation_submitted", job_id=job.id, job_type=str(job_type))
        return job

    async def generate_video(self, request: BaseModel | dict[str, Any]) -> GenerationJob:
        return await self.generate(JobType.VIDEO, request)

    async def generate_blog(self, request: BaseModel | dict[str, Any]) -> GenerationJob:
        return await self.generate(JobType.BLOG, request)

    async def generate_social(self, request: BaseModel | dict[str, Any]) -> GenerationJob:
        return await self.generate(JobType.SOCIAL, request)

    async def get_job(self, job_id: str) -> GenerationJob:
        """Current snapshot of ``job_id``."""
        _require_job_id(job_id)
        body = await self._request("GET", f"/generation/jobs/{job_id}")
        return GenerationJob.model_validate(body)

    async def list_jobs(
        self,
        job_type: JobType | None = None,
        status: JobStatus | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> JobList:
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if job_type is not None:
            params["type"] = str(job_type)
        if status is not None:
            params["status"] = str(status)
        body = await self._request("GET", "/generation/jobs", params=params)
        return JobList.model_validate(body)

    async def cancel_job(self, job_id: str) -> CancelResponse:
        _require_job_id(job_id)
        body = await self._request("POST", f"/generation/jobs/{job_id}/cancel")
        return CancelResponse.model_validate(body)

    async def estimate_cost(
        self, job_type: JobType | str, params: dict[str, Any]
    ) -> CostEstimate:
        body = await self._request(
            "POST",
            "/generation/estimate-cost",
            json={"type": str(JobType(job_type)), "params": params},
        )
        return CostEstimate.model_validate(body)

    async def usage(self) -> UsageStats:
        body = await self._request("GET", "/generation/usage")
        return UsageStats.model_validate(body)

    async def audio_capabilities(self) -> dict[str, Any]:
        return await self._request("GET", "/generation/audio/capabilities")

    async def list_voices(self) -> list[dict[str, Any]]:
        body = await self._request("GET", "/generation/audio/voices")
        return body["voices"]

    # -------------------------------------------------------------------------
    # Service
    # -------------------------------------------------------------------------

    async def health(self) -> dict[str, Any]:
        """Liveness payload from ``/health``, which is served outside ``/api/v1``."""
        url = self._client.base_url.copy_with(path="/health")
        return await self._request("GET", str(url))


def _require_job_id(job_id: str) -> None:
    if not job_id or not job_id.strip():
        raise InvalidRequestError("job_id must be a non-empty string")
