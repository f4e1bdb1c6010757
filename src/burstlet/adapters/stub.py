"""Stub provider that simulates every capability without external calls."""

import math
from typing import Any
from uuid import uuid4

from burstlet.adapters.base import (
    AudioResult,
    BlogPost,
    MusicRequest,
    ProviderAdapter,
    SocialPost,
    SocialPostsResult,
    SoundEffectRequest,
    VendorJobState,
    VideoJobStatus,
    VoiceoverRequest,
)
from burstlet.domain.enums import Capability
from burstlet.domain.requests import (
    BlogGenerationRequest,
    SocialGenerationRequest,
    VideoGenerationRequest,
)
from burstlet.logging import get_logger

logger = get_logger(__name__)

STUB_CDN = "https://cdn.burstlet.dev/stub"

STUB_VOICES = [
    {"id": "narrator", "name": "Narrator", "language": "en", "gender": "female"},
    {"id": "energetic", "name": "Energetic", "language": "en", "gender": "male"},
    {"id": "calm", "name": "Calm", "language": "en", "gender": "female"},
]


class StubProvider(ProviderAdapter):
    """Deterministic provider for development and tests.

    Video jobs report PROCESSING until they have been checked
    ``steps_to_complete`` times, then COMPLETED.
    """

    capabilities = frozenset({Capability.VIDEO, Capability.TEXT, Capability.AUDIO})
    requires_api_key = False

    def __init__(self, steps_to_complete: int = 2) -> None:
        super().__init__()
        self.steps_to_complete = steps_to_complete
        self._checks: dict[str, int] = {}
        self._durations: dict[str, int] = {}

    @property
    def name(self) -> str:
        return "stub"

    async def _generate_video(self, request: VideoGenerationRequest) -> VideoJobStatus:
        job_id = f"stub-{uuid4().hex[:12]}"
        self._checks[job_id] = 0
        self._durations[job_id] = request.duration
        logger.info("stub_video_generation_started", vendor_job_id=job_id, prompt=request.prompt[:100])
        return VideoJobStatus(job_id=job_id, state=VendorJobState.PENDING)

    async def _get_video_status(self, job_id: str) -> VideoJobStatus:
        checks = self._checks.get(job_id, self.steps_to_complete - 1) + 1
        self._checks[job_id] = checks

        if checks < self.steps_to_complete:
            return VideoJobStatus(job_id=job_id, state=VendorJobState.PROCESSING)

        return VideoJobStatus(
            job_id=job_id,
            state=VendorJobState.COMPLETED,
            video_url=f"{STUB_CDN}/{job_id}.mp4",
            thumbnail_url=f"{STUB_CDN}/{job_id}.jpg",
            duration_seconds=float(self._durations.get(job_id, 15)),
        )

    async def _generate_blog(self, request: BlogGenerationRequest) -> BlogPost:
        keywords = request.keywords or [w.lower() for w in request.topic.split()[:3]]
        sections = [f"# {request.topic}", ""]
        for heading in ("Introduction", "Why it matters", "What comes next"):
            sections.append(f"## {heading}")
            sections.append(
                f"A {request.tone} look at {request.topic}, touching on {', '.join(keywords)}."
            )
            sections.append("")
        content = "\n".join(sections).strip()
        word_count = len(content.split())

        return BlogPost(
            title=request.topic,
            content=content,
            excerpt=f"A {request.tone} look at {request.topic}.",
            keywords=keywords,
            word_count=word_count,
            read_time_minutes=max(1, math.ceil(word_count / 200)),
        )

    async def _generate_social_posts(self, request: SocialGenerationRequest) -> SocialPostsResult:
        tag = "#" + "".join(w.capitalize() for w in request.topic.split()[:3])
        posts = []
        for platform in request.platforms:
            content = f"Let's talk about {request.topic}"
            if request.emojis:
                content += " 🚀"
            posts.append(
                SocialPost(
                    platform=str(platform),
                    content=content,
                    hashtags=[tag] if request.hashtags else [],
                )
            )
        return SocialPostsResult(posts=posts)

    async def _generate_voiceover(self, request: VoiceoverRequest) -> AudioResult:
        # ~150 words per minute
        duration = round(len(request.text.split()) / 150 * 60, 2)
        return AudioResult(
            audio_url=f"{STUB_CDN}/voiceover-{uuid4().hex[:8]}.{request.output_format}",
            duration_seconds=duration,
            format=request.output_format,
            metadata={"provider": self.name, "voice_id": request.voice_id or "narrator"},
        )

    async def _generate_music(self, request: MusicRequest) -> AudioResult:
        return AudioResult(
            audio_url=f"{STUB_CDN}/music-{uuid4().hex[:8]}.mp3",
            duration_seconds=float(request.duration_seconds),
            metadata={"provider": self.name, "mood": request.mood},
        )

    async def _generate_sound_effect(self, request: SoundEffectRequest) -> AudioResult:
        return AudioResult(
            audio_url=f"{STUB_CDN}/sfx-{uuid4().hex[:8]}.mp3",
            duration_seconds=float(request.duration_seconds),
            metadata={"provider": self.name},
        )

    async def _list_voices(self) -> list[dict[str, Any]]:
        return [dict(v) for v in STUB_VOICES]

    async def health_check(self) -> bool:
        """Stub provider is always healthy."""
        return True
