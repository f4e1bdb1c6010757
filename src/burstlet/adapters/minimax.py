"""MiniMax audio provider: voiceover, background music and sound effects."""

import math
from typing import Any, ClassVar, Literal

import httpx

from burstlet.adapters.base import (
    AudioResult,
    MusicRequest,
    ProviderAdapter,
    SoundEffectRequest,
    VoiceoverRequest,
)
from burstlet.config import settings
from burstlet.domain.enums import Capability
from burstlet.errors import GenerationError, ProviderError
from burstlet.logging import get_logger

logger = get_logger(__name__)

AudioKind = Literal["voiceover", "music", "sfx"]


class MiniMaxProvider(ProviderAdapter):
    """MiniMax audio generation provider.

    Audio only. Video and text operations raise UnsupportedFeatureError before
    any network call.
    """

    capabilities = frozenset({Capability.AUDIO})
    default_base_url = "https://api.minimax.chat/v1"

    VOICEOVER_COST_PER_1K_CHARS: ClassVar[float] = 0.006
    MUSIC_COST_PER_SECOND: ClassVar[float] = 0.02
    SFX_COST_PER_SECOND: ClassVar[float] = 0.01
    DEFAULT_AUDIO_SECONDS: ClassVar[int] = 30
    SOUND_EFFECT_SECONDS: ClassVar[int] = 5

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            api_key=api_key or settings.minimax_api_key,
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )

    @property
    def name(self) -> str:
        return "minimax"

    async def _generate_voiceover(self, request: VoiceoverRequest) -> AudioResult:
        logger.info(
            "minimax_voiceover_started",
            text_length=len(request.text),
            voice_id=request.voice_id or "default",
        )
        data = await self._request(
            "POST",
            "/tts",
            json={
                "text": request.text,
                "voice_id": request.voice_id or "default",
                "speed": request.speed,
                "language": request.language,
                "format": request.output_format,
            },
        )
        return self._audio_result(
            data,
            url_key="audio_url",
            cost=self.estimate_voiceover_cost(request.text),
            metadata={"voice_id": request.voice_id or "default"},
        )

    async def _generate_music(self, request: MusicRequest) -> AudioResult:
        logger.info("minimax_music_started", duration=request.duration_seconds)
        data = await self._request(
            "POST",
            "/music/generate",
            json={
                "prompt": request.prompt,
                "duration": request.duration_seconds,
                "style": request.style,
                "mood": request.mood,
            },
        )
        return self._audio_result(
            data,
            url_key="music_url",
            cost=self.estimate_music_cost(request.duration_seconds),
        )

    async def _generate_sound_effect(self, request: SoundEffectRequest) -> AudioResult:
        logger.info("minimax_sfx_started", duration=request.duration_seconds)
        data = await self._request(
            "POST",
            "/sfx/generate",
            json={
                "prompt": request.description,
                "duration": request.duration_seconds,
                "category": request.category,
            },
        )
        return self._audio_result(
            data,
            url_key="sound_url",
            cost=self.estimate_sound_effect_cost(request.duration_seconds),
        )

    async def _list_voices(self) -> list[dict[str, Any]]:
        data = await self._request("GET", "/voices")
        voices = data.get("voices") if isinstance(data, dict) else None
        if not isinstance(voices, list):
            raise ProviderError(
                "Failed to fetch available voices",
                provider=self.name,
                payload=data,
            )
        return voices

    def _audio_result(
        self,
        data: Any,
        url_key: str,
        cost: float,
        metadata: dict[str, Any] | None = None,
    ) -> AudioResult:
        url = data.get(url_key) if isinstance(data, dict) else None
        if not url:
            raise ProviderError(
                f"MiniMax response is missing {url_key}",
                provider=self.name,
                payload=data,
            )
        return AudioResult(
            audio_url=url,
            duration_seconds=float(data.get("duration") or 0.0),
            format=data.get("format") or "mp3",
            cost_estimate=cost,
            metadata={"provider": self.name, "file_size": data.get("file_size"), **(metadata or {})},
        )

    def _check_payload(self, data: Any) -> None:
        # MiniMax can answer 200 with a non-zero base_resp status
        if isinstance(data, dict):
            base_resp = data.get("base_resp")
            if isinstance(base_resp, dict) and base_resp.get("status_code", 0) != 0:
                raise ProviderError(
                    f"minimax API error: {base_resp.get('status_msg') or 'unknown error'}",
                    provider=self.name,
                    payload=data,
                )
        super()._check_payload(data)

    @classmethod
    def estimate_voiceover_cost(cls, text: str) -> float:
        """Voiceover is billed per started block of 1000 characters."""
        return round(cls.voiceover_credits(text) * cls.VOICEOVER_COST_PER_1K_CHARS, 6)

    @classmethod
    def voiceover_credits(cls, text: str) -> int:
        return math.ceil(len(text) / 1000)

    @classmethod
    def estimate_music_cost(cls, duration_seconds: float | None = None) -> float:
        seconds = duration_seconds or cls.DEFAULT_AUDIO_SECONDS
        return round(seconds * cls.MUSIC_COST_PER_SECOND, 6)

    @classmethod
    def estimate_sound_effect_cost(cls, duration_seconds: float | None = None) -> float:
        seconds = duration_seconds or cls.DEFAULT_AUDIO_SECONDS
        return round(seconds * cls.SFX_COST_PER_SECOND, 6)

    @classmethod
    def estimate_audio_cost(
        cls,
        kind: AudioKind,
        text: str | None = None,
        duration_seconds: float | None = None,
    ) -> tuple[float, int]:
        """Estimated (dollars, credits) for one audio asset."""
        if kind == "voiceover":
            text = text or ""
            return cls.estimate_voiceover_cost(text), cls.voiceover_credits(text)
        seconds = duration_seconds or cls.DEFAULT_AUDIO_SECONDS
        if kind == "music":
            return cls.estimate_music_cost(seconds), math.ceil(seconds)
        return cls.estimate_sound_effect_cost(seconds), math.ceil(seconds)

    async def health_check(self) -> bool:
        if not self.api_key:
            return False
        try:
            await self.list_voices()
            return True
        except GenerationError:
            return False
