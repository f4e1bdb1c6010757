"""Base interface for AI provider adapters.

Every adapter declares the capabilities it implements. Public operations check
the capability first, then the adapter's own configuration, and only then talk
to the vendor, so an unsupported or unconfigured call never reaches the network.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, ClassVar

import httpx

from burstlet.domain.enums import Capability
from burstlet.domain.requests import (
    BlogGenerationRequest,
    SocialGenerationRequest,
    VideoGenerationRequest,
)
from burstlet.errors import (
    ConfigurationError,
    ProviderError,
    TransportError,
    UnsupportedFeatureError,
)
from burstlet.logging import get_logger

logger = get_logger(__name__)


class VendorJobState(StrEnum):
    """Normalized state of a job running on a vendor's side."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class VideoJobStatus:
    """A vendor video job, normalized."""

    job_id: str
    state: VendorJobState
    video_url: str | None = None
    thumbnail_url: str | None = None
    duration_seconds: float | None = None
    error_message: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class BlogPost:
    """Generated blog post."""

    title: str
    content: str
    excerpt: str
    keywords: list[str] = field(default_factory=list)
    word_count: int = 0
    read_time_minutes: int = 1
    cost_estimate: float = 0.0
    usage: dict[str, int] = field(default_factory=dict)


@dataclass
class SocialPost:
    """One generated post for one platform."""

    platform: str
    content: str
    hashtags: list[str] = field(default_factory=list)


@dataclass
class SocialPostsResult:
    """Posts generated for every requested platform."""

    posts: list[SocialPost]
    cost_estimate: float = 0.0
    usage: dict[str, int] = field(default_factory=dict)


@dataclass
class VoiceoverRequest:
    """Request for voiceover audio."""

    text: str
    voice_id: str | None = None
    language: str = "en"
    speed: float = 1.0
    output_format: str = "mp3"


@dataclass
class MusicRequest:
    """Request for background music."""

    prompt: str
    duration_seconds: int = 15
    style: str | None = None
    mood: str | None = None


@dataclass
class SoundEffectRequest:
    """Request for a sound effect."""

    description: str
    duration_seconds: int = 5
    category: str | None = None


@dataclass
class AudioResult:
    """Generated audio asset."""

    audio_url: str
    duration_seconds: float
    format: str = "mp3"
    cost_estimate: float = 0.0
    metadata: dict[str, Any] = field(default_factory=dict)


class ProviderAdapter(ABC):
    """Abstract base class for AI provider adapters.

    Implementations:
    - HailuoAIProvider: video generation
    - OpenAIProvider: blog and social text generation
    - MiniMaxProvider: voiceover, music and sound effects
    - StubProvider: every capability, no network, for development and tests
    """

    capabilities: ClassVar[frozenset[Capability]] = frozenset()
    requires_api_key: ClassVar[bool] = True
    default_base_url: ClassVar[str] = ""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout = timeout
        self.transport = transport

        if self.requires_api_key and not self.api_key:
            logger.warning("provider_api_key_missing", provider=self.name)

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    # -------------------------------------------------------------------------
    # Capability and configuration checks
    # -------------------------------------------------------------------------

    def supports(self, capability: Capability | str) -> bool:
        """Whether this adapter declares ``capability``."""
        return Capability(capability) in self.capabilities

    def require(self, capability: Capability | str) -> None:
        """Raise UnsupportedFeatureError unless ``capability`` is declared."""
        capability = Capability(capability)
        if capability not in self.capabilities:
            raise UnsupportedFeatureError(
                f"{self.name} provider does not support {capability} generation",
                details={
                    "provider": self.name,
                    "capability": str(capability),
                    "supported": sorted(str(c) for c in self.capabilities),
                },
            )

    def validate_config(self) -> None:
        """Raise ConfigurationError if a required credential is missing."""
        if self.requires_api_key and not self.api_key:
            raise ConfigurationError(
                f"{self.name} API key is required",
                details={"provider": self.name},
            )

    def _prepare(self, capability: Capability) -> None:
        self.require(capability)
        self.validate_config()

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def generate_video(self, request: VideoGenerationRequest) -> VideoJobStatus:
        """Submit a video generation job to the vendor."""
        self._prepare(Capability.VIDEO)
        return await self._generate_video(request)

    async def get_video_status(self, job_id: str) -> VideoJobStatus:
        """Fetch the vendor-side state of a video job."""
        self._prepare(Capability.VIDEO)
        return await self._get_video_status(job_id)

    async def generate_blog(self, request: BlogGenerationRequest) -> BlogPost:
        """Generate a blog post."""
        self._prepare(Capability.TEXT)
        return await self._generate_blog(request)

    async def generate_social_posts(self, request: SocialGenerationRequest) -> SocialPostsResult:
        """Generate one post per requested platform."""
        self._prepare(Capability.TEXT)
        return await self._generate_social_posts(request)

    async def generate_voiceover(self, request: VoiceoverRequest) -> AudioResult:
        """Generate voiceover audio from text."""
        self._prepare(Capability.AUDIO)
        return await self._generate_voiceover(request)

    async def generate_music(self, request: MusicRequest) -> AudioResult:
        """Generate background music."""
        self._prepare(Capability.AUDIO)
        return await self._generate_music(request)

    async def generate_sound_effect(self, request: SoundEffectRequest) -> AudioResult:
        """Generate a sound effect."""
        self._prepare(Capability.AUDIO)
        return await self._generate_sound_effect(request)

    async def list_voices(self) -> list[dict[str, Any]]:
        """List voices available for voiceover."""
        self._prepare(Capability.AUDIO)
        return await self._list_voices()

    async def health_check(self) -> bool:
        """Check if the provider is available and healthy.

        Returns:
            True if provider is operational, False otherwise
        """
        return True

    # -------------------------------------------------------------------------
    # Vendor hooks, overridden for each declared capability
    # -------------------------------------------------------------------------

    async def _generate_video(self, request: VideoGenerationRequest) -> VideoJobStatus:
        raise UnsupportedFeatureError(f"{self.name} does not implement video generation")

    async def _get_video_status(self, job_id: str) -> VideoJobStatus:
        raise UnsupportedFeatureError(f"{self.name} does not implement video status")

    async def _generate_blog(self, request: BlogGenerationRequest) -> BlogPost:
        raise UnsupportedFeatureError(f"{self.name} does not implement blog generation")

    async def _generate_social_posts(self, request: SocialGenerationRequest) -> SocialPostsResult:
        raise UnsupportedFeatureError(f"{self.name} does not implement social generation")

    async def _generate_voiceover(self, request: VoiceoverRequest) -> AudioResult:
        raise UnsupportedFeatureError(f"{self.name} does not implement voiceover")

    async def _generate_music(self, request: MusicRequest) -> AudioResult:
        raise UnsupportedFeatureError(f"{self.name} does not implement music")

    async def _generate_sound_effect(self, request: SoundEffectRequest) -> AudioResult:
        raise UnsupportedFeatureError(f"{self.name} does not implement sound effects")

    async def _list_voices(self) -> list[dict[str, Any]]:
        raise UnsupportedFeatureError(f"{self.name} does not implement voice listing")

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Issue one vendor call and return its decoded JSON body.

        Raises:
            ProviderError: Non-success status or an error payload.
            TransportError: The vendor could not be reached.
        """
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=timeout or self.timeout,
                transport=self.transport,
            ) as client:
                response = await client.request(
                    method,
                    url,
                    headers=self._headers(),
                    json=json,
                    params=params,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            payload = response_payload(e.response)
            message = vendor_message(payload) or f"HTTP {e.response.status_code}"
            logger.error(
                "provider_api_error",
                provider=self.name,
                status_code=e.response.status_code,
                error=message,
            )
            raise ProviderError(
                f"{self.name} API error: {message}",
                provider=self.name,
                payload=payload,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.error("provider_unreachable", provider=self.name, error=str(e))
            raise TransportError(
                f"Could not reach {self.name}: {e}",
                provider=self.name,
            ) from e

        if not response.content:
            return {}

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"{self.name} returned a non-JSON response",
                provider=self.name,
                payload=response.text[:1000],
                status_code=response.status_code,
            ) from e

        self._check_payload(data)
        return data

    def _check_payload(self, data: Any) -> None:
        """Raise ProviderError for a success status carrying only an error object."""
        if isinstance(data, dict) and set(data) == {"error"} and data["error"]:
            raise ProviderError(
                f"{self.name} API error: {vendor_message(data)}",
                provider=self.name,
                payload=data,
            )


def response_payload(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:1000]


def vendor_message(payload: Any) -> str | None:
    """Pull a human-readable message out of a vendor error body."""
    if isinstance(payload, str):
        return payload or None
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if isinstance(error, dict):
        return error.get("message") or error.get("type")
    if isinstance(error, str):
        return error
    detail = payload.get("detail")
    if isinstance(detail, dict):
        return detail.get("message")
    if isinstance(detail, str):
        return detail
    return payload.get("message")
