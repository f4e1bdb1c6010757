"""Tests for adapter implementations."""

import json

import httpx
import pytest

from burstlet.adapters.base import VendorJobState, VoiceoverRequest
from burstlet.adapters.factory import create_provider, get_provider
from burstlet.adapters.hailuoai import HailuoAIProvider
from burstlet.adapters.minimax import MiniMaxProvider
from burstlet.adapters.openai import OpenAIProvider
from burstlet.domain.enums import Capability, VideoQuality
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


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, *responses: httpx.Response) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def completion(content: dict, total_tokens: int = 1000) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "choices": [{"message": {"content": json.dumps(content)}}],
            "usage": {"prompt_tokens": 100, "completion_tokens": 900, "total_tokens": total_tokens},
        },
    )


# =============================================================================
# Stub
# =============================================================================


@pytest.mark.asyncio
async def test_stub_video_completes_after_steps(stub_provider) -> None:
    """Test stub video generation provider."""
    status = await stub_provider.generate_video(VideoGenerationRequest(prompt="A calm lake", duration=10))
    assert status.state == VendorJobState.PENDING
    assert status.job_id.startswith("stub-")

    first = await stub_provider.get_video_status(status.job_id)
    second = await stub_provider.get_video_status(status.job_id)

    assert first.state == VendorJobState.PROCESSING
    assert second.state == VendorJobState.COMPLETED
    assert second.video_url.endswith(f"{status.job_id}.mp4")
    assert second.duration_seconds == 10.0


@pytest.mark.asyncio
async def test_stub_text_generation(stub_provider) -> None:
    blog = await stub_provider.generate_blog(BlogGenerationRequest(topic="AI trends"))
    social = await stub_provider.generate_social_posts(
        SocialGenerationRequest(topic="AI trends", platforms=["twitter", "instagram"], emojis=False)
    )

    assert blog.title == "AI trends"
    assert blog.content.startswith("# AI trends")
    assert blog.word_count > 0
    assert [p.platform for p in social.posts] == ["twitter", "instagram"]
    assert social.posts[0].hashtags == ["#AiTrends"]


@pytest.mark.asyncio
async def test_stub_health_and_voices(stub_provider) -> None:
    assert await stub_provider.health_check() is True
    voices = await stub_provider.list_voices()
    assert [v["id"] for v in voices] == ["narrator", "energetic", "calm"]


# =============================================================================
# HailuoAI
# =============================================================================


@pytest.mark.asyncio
async def test_hailuoai_submits_video() -> None:
    recorder = Recorder(httpx.Response(200, json={"id": "vid-1", "status": "queued"}))
    provider = HailuoAIProvider(
        api_key="test-key", base_url="https://hailuo.test/v1", transport=recorder.transport
    )

    status = await provider.generate_video(
        VideoGenerationRequest(prompt="Sunset", duration=20, quality="high", aspect_ratio="9:16")
    )

    assert status.job_id == "vid-1"
    assert status.state == VendorJobState.PENDING
    request = recorder.requests[0]
    assert request.url == "https://hailuo.test/v1/generate/video"
    assert request.headers["Authorization"] == "Bearer test-key"
    body = json.loads(request.content)
    assert body["duration"] == 20
    assert body["quality"] == "high"
    assert body["aspect_ratio"] == "9:16"


@pytest.mark.asyncio
async def test_hailuoai_status_completed() -> None:
    recorder = Recorder(
        httpx.Response(
            200,
            json={"id": "vid-1", "status": "completed", "video_url": "https://cdn/v.mp4", "duration": 20},
        )
    )
    provider = HailuoAIProvider(api_key="k", base_url="https://hailuo.test/v1", transport=recorder.transport)

    status = await provider.get_video_status("vid-1")

    assert status.state == VendorJobState.COMPLETED
    assert status.video_url == "https://cdn/v.mp4"
    assert recorder.requests[0].url.path == "/v1/generate/video/vid-1"


@pytest.mark.asyncio
async def test_hailuoai_vendor_error_keeps_status() -> None:
    recorder = Recorder(httpx.Response(503, json={"error": {"message": "overloaded"}}))
    provider = HailuoAIProvider(api_key="k", base_url="https://hailuo.test/v1", transport=recorder.transport)

    with pytest.raises(ProviderError) as exc_info:
        await provider.get_video_status("vid-1")

    error = exc_info.value
    assert error.status_code == 503
    assert error.provider == "hailuoai"
    assert "overloaded" in error.message
    assert error.retryable


@pytest.mark.asyncio
async def test_hailuoai_error_payload_on_success_status() -> None:
    recorder = Recorder(httpx.Response(200, json={"error": "invalid prompt"}))
    provider = HailuoAIProvider(api_key="k", base_url="https://hailuo.test/v1", transport=recorder.transport)

    with pytest.raises(ProviderError, match="invalid prompt"):
        await provider.generate_video(VideoGenerationRequest(prompt="x"))


@pytest.mark.asyncio
async def test_hailuoai_unknown_status_is_rejected() -> None:
    recorder = Recorder(httpx.Response(200, json={"id": "vid-1", "status": "teleporting"}))
    provider = HailuoAIProvider(api_key="k", base_url="https://hailuo.test/v1", transport=recorder.transport)

    with pytest.raises(ProviderError, match="Unknown HailuoAI job status"):
        await provider.get_video_status("vid-1")


@pytest.mark.asyncio
async def test_connection_failure_is_transport_error() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    provider = HailuoAIProvider(
        api_key="k", base_url="https://hailuo.test/v1", transport=httpx.MockTransport(refuse)
    )

    with pytest.raises(TransportError) as exc_info:
        await provider.get_video_status("vid-1")
    assert exc_info.value.retryable


@pytest.mark.asyncio
async def test_unsupported_capability_makes_no_request() -> None:
    recorder = Recorder()
    provider = HailuoAIProvider(api_key="k", base_url="https://hailuo.test/v1", transport=recorder.transport)

    with pytest.raises(UnsupportedFeatureError) as exc_info:
        await provider.generate_blog(BlogGenerationRequest(topic="AI"))

    assert exc_info.value.status_code == 501
    assert exc_info.value.details["capability"] == "text"
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_missing_api_key_makes_no_request() -> None:
    recorder = Recorder()
    provider = HailuoAIProvider(base_url="https://hailuo.test/v1", transport=recorder.transport)

    with pytest.raises(ConfigurationError):
        await provider.generate_video(VideoGenerationRequest(prompt="x"))
    assert recorder.requests == []


def test_video_cost_scales_with_duration_and_quality() -> None:
    assert HailuoAIProvider.estimate_video_cost(10) == 0.2
    assert HailuoAIProvider.estimate_video_cost(20) == 0.4
    assert HailuoAIProvider.estimate_video_cost(10, VideoQuality.DRAFT) == 0.1
    assert HailuoAIProvider.estimate_video_cost(10, "ultra") == 0.5
    # Capped at the vendor's maximum length
    assert HailuoAIProvider.estimate_video_cost(120) == HailuoAIProvider.estimate_video_cost(60)


# =============================================================================
# OpenAI
# =============================================================================


@pytest.mark.asyncio
async def test_openai_blog() -> None:
    recorder = Recorder(
        completion(
            {
                "title": "AI Trends 2025",
                "content": "word " * 400,
                "excerpt": "What changed",
                "keywords": ["ai"],
            }
        )
    )
    provider = OpenAIProvider(api_key="sk-test", model="gpt-4o-mini", transport=recorder.transport)

    post = await provider.generate_blog(BlogGenerationRequest(topic="AI trends", keywords=["ai"]))

    assert post.title == "AI Trends 2025"
    assert post.word_count == 400
    assert post.read_time_minutes == 2
    assert post.cost_estimate == pytest.approx(0.0006)
    body = json.loads(recorder.requests[0].content)
    assert body["model"] == "gpt-4o-mini"
    assert body["response_format"] == {"type": "json_object"}


@pytest.mark.asyncio
async def test_openai_social_trims_to_platform_limit() -> None:
    recorder = Recorder(
        completion(
            {
                "posts": [
                    {"platform": "twitter", "content": "x" * 400, "hashtags": ["#ai"]},
                    {"platform": "instagram", "content": "Hello", "hashtags": ["#ai"]},
                ]
            }
        )
    )
    provider = OpenAIProvider(api_key="sk-test", transport=recorder.transport)

    result = await provider.generate_social_posts(
        SocialGenerationRequest(topic="AI", platforms=["twitter", "instagram"], hashtags=False)
    )

    assert len(result.posts[0].content) == 280
    assert result.posts[1].content == "Hello"
    assert result.posts[0].hashtags == []


@pytest.mark.asyncio
async def test_openai_social_missing_platform() -> None:
    recorder = Recorder(completion({"posts": [{"platform": "twitter", "content": "Hi"}]}))
    provider = OpenAIProvider(api_key="sk-test", transport=recorder.transport)

    with pytest.raises(ProviderError, match="tiktok"):
        await provider.generate_social_posts(
            SocialGenerationRequest(topic="AI", platforms=["twitter", "tiktok"])
        )


@pytest.mark.asyncio
async def test_openai_non_json_content() -> None:
    recorder = Recorder(
        httpx.Response(200, json={"choices": [{"message": {"content": "not json"}}], "usage": {}})
    )
    provider = OpenAIProvider(api_key="sk-test", transport=recorder.transport)

    with pytest.raises(ProviderError, match="not valid JSON"):
        await provider.generate_blog(BlogGenerationRequest(topic="AI"))


def test_text_cost_estimates() -> None:
    assert OpenAIProvider.estimate_tokens("abcd" * 10) == 10
    assert OpenAIProvider.estimate_tokens("") == 1
    assert OpenAIProvider.estimate_text_cost(1000, "gpt-4o") == 0.005
    # Unknown models are priced like the default
    assert OpenAIProvider.estimate_text_cost(1000, "mystery") == 0.0006


# =============================================================================
# MiniMax
# =============================================================================


@pytest.mark.asyncio
async def test_minimax_voiceover() -> None:
    recorder = Recorder(
        httpx.Response(200, json={"audio_url": "https://cdn/a.mp3", "duration": 3.5, "format": "mp3"})
    )
    provider = MiniMaxProvider(api_key="mm", base_url="https://minimax.test/v1", transport=recorder.transport)

    audio = await provider.generate_voiceover(VoiceoverRequest(text="Hello there"))

    assert audio.audio_url == "https://cdn/a.mp3"
    assert audio.duration_seconds == 3.5
    assert audio.cost_estimate == 0.006
    assert recorder.requests[0].url.path == "/v1/tts"


@pytest.mark.asyncio
async def test_minimax_base_resp_error() -> None:
    recorder = Recorder(
        httpx.Response(200, json={"base_resp": {"status_code": 1004, "status_msg": "auth failed"}})
    )
    provider = MiniMaxProvider(api_key="mm", transport=recorder.transport)

    with pytest.raises(ProviderError, match="auth failed"):
        await provider.generate_voiceover(VoiceoverRequest(text="Hello"))


def test_audio_cost_estimates() -> None:
    assert MiniMaxProvider.estimate_voiceover_cost("a" * 1500) == 0.012
    assert MiniMaxProvider.estimate_music_cost(10) == 0.2
    assert MiniMaxProvider.estimate_sound_effect_cost(10) == 0.1
    assert MiniMaxProvider.estimate_audio_cost("voiceover", text="a" * 2001) == (0.018, 3)


# =============================================================================
# Factory
# =============================================================================


def test_unknown_provider_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        create_provider("sora")


def test_get_provider_checks_capability_before_credentials() -> None:
    with pytest.raises(UnsupportedFeatureError):
        get_provider(Capability.VIDEO, "openai")
    with pytest.raises(ConfigurationError):
        get_provider(Capability.TEXT, "openai")


def test_configured_stub_serves_every_capability() -> None:
    for capability in Capability:
        assert get_provider(capability).name == "stub"
