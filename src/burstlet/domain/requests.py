"""Generation request schemas shared by the API and the client.

The same models validate a request inside the Python client (before any
network call) and at the API boundary.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from burstlet.domain.enums import BlogLength, BlogTone, JobType, Platform, VideoQuality
from burstlet.errors import InvalidRequestError

ASPECT_RATIOS = ("16:9", "9:16", "1:1", "4:3", "3:4")


class VoiceoverOptions(BaseModel):
    text: str | None = Field(None, max_length=5000)
    voice: str | None = None
    language: str = "en"


class BackgroundMusicOptions(BaseModel):
    style: str | None = None
    mood: str | None = None
    volume: float = Field(default=0.3, ge=0.0, le=1.0)


class AudioOptions(BaseModel):
    voiceover: VoiceoverOptions | None = None
    background_music: BackgroundMusicOptions | None = None
    sound_effects: bool = False


class VideoGenerationRequest(BaseModel):
    """Request to generate a video."""

    model_config = ConfigDict(extra="forbid")

    prompt: str = Field(..., min_length=1, max_length=500)
    style: str | None = Field(None, max_length=100)
    duration: int = Field(default=15, ge=5, le=60, description="Seconds")
    aspect_ratio: str = Field(default="16:9")
    quality: VideoQuality = VideoQuality.STANDARD
    include_audio: bool = False
    audio_options: AudioOptions | None = None

    @field_validator("prompt")
    @classmethod
    def _prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value

    @field_validator("aspect_ratio")
    @classmethod
    def _supported_aspect_ratio(cls, value: str) -> str:
        if value not in ASPECT_RATIOS:
            raise ValueError(f"aspect_ratio must be one of {', '.join(ASPECT_RATIOS)}")
        return value


class BlogGenerationRequest(BaseModel):
    """Request to generate a blog post."""

    model_config = ConfigDict(extra="forbid")

    topic: str = Field(..., min_length=1, max_length=200)
    tone: BlogTone = BlogTone.PROFESSIONAL
    length: BlogLength = BlogLength.MEDIUM
    keywords: list[str] = Field(default_factory=list, max_length=20)
    include_images: bool = False

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("topic must not be blank")
        return value


class SocialGenerationRequest(BaseModel):
    """Request to generate posts for one or more social platforms."""

    model_config = ConfigDict(extra="forbid")

    topic: str = Field(..., min_length=1, max_length=200)
    platforms: list[Platform] = Field(..., min_length=1)
    tone: str | None = Field(None, max_length=50)
    hashtags: bool = True
    emojis: bool = True

    @field_validator("topic")
    @classmethod
    def _topic_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("topic must not be blank")
        return value

    @field_validator("platforms")
    @classmethod
    def _dedupe_platforms(cls, value: list[Platform]) -> list[Platform]:
        return list(dict.fromkeys(value))


GenerationRequest = VideoGenerationRequest | BlogGenerationRequest | SocialGenerationRequest

REQUEST_MODELS: dict[JobType, type[BaseModel]] = {
    JobType.VIDEO: VideoGenerationRequest,
    JobType.BLOG: BlogGenerationRequest,
    JobType.SOCIAL: SocialGenerationRequest,
}


def parse_request(job_type: JobType | str, data: Any) -> GenerationRequest:
    """Validate raw request data for a job type.

    Raises:
        InvalidRequestError: If the payload does not match the request shape.
    """
    try:
        model = REQUEST_MODELS[JobType(job_type)]
    except ValueError as e:
        raise InvalidRequestError(f"Unknown generation type: {job_type}") from e

    if isinstance(data, model):
        return data  # type: ignore[return-value]
    if isinstance(data, BaseModel):
        data = data.model_dump()

    try:
        return model.model_validate(data)  # type: ignore[return-value]
    except ValidationError as e:
        raise InvalidRequestError(
            f"Invalid {JobType(job_type)} generation request",
            details=e.errors(include_url=False, include_context=False),
        ) from e
