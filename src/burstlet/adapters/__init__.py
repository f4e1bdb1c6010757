"""Adapters for external AI providers."""

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
from burstlet.adapters.factory import create_provider, get_provider
from burstlet.adapters.hailuoai import HailuoAIProvider
from burstlet.adapters.minimax import MiniMaxProvider
from burstlet.adapters.openai import OpenAIProvider
from burstlet.adapters.stub import StubProvider

__all__ = [
    "AudioResult",
    "BlogPost",
    "HailuoAIProvider",
    "MiniMaxProvider",
    "MusicRequest",
    "OpenAIProvider",
    "ProviderAdapter",
    "SocialPost",
    "SocialPostsResult",
    "SoundEffectRequest",
    "StubProvider",
    "VendorJobState",
    "VideoJobStatus",
    "VoiceoverRequest",
    "create_provider",
    "get_provider",
]
