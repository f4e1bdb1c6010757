"""OpenAI text generation provider for blog posts and social media posts."""

import json
import math
from typing import Any, ClassVar

import httpx

from burstlet.adapters.base import BlogPost, ProviderAdapter, SocialPost, SocialPostsResult
from burstlet.config import settings
from burstlet.domain.enums import Capability, Platform
from burstlet.domain.requests import BlogGenerationRequest, SocialGenerationRequest
from burstlet.errors import GenerationError, ProviderError
from burstlet.logging import get_logger

logger = get_logger(__name__)

# Per-platform character limits a generated post is trimmed to
PLATFORM_CHAR_LIMITS: dict[Platform, int] = {
    Platform.TWITTER: 280,
    Platform.INSTAGRAM: 2200,
    Platform.TIKTOK: 2200,
    Platform.YOUTUBE: 5000,
}

WORDS_PER_MINUTE = 200

BLOG_SYSTEM_PROMPT = """You are an expert content writer. Write engaging, well-structured blog posts in Markdown.

Respond with a JSON object:
{"title": "...", "content": "...", "excerpt": "...", "keywords": ["..."]}"""

SOCIAL_SYSTEM_PROMPT = """You write social media posts tailored to each platform's audience and limits.

Respond with a JSON object:
{"posts": [{"platform": "...", "content": "...", "hashtags": ["..."]}]}"""


class OpenAIProvider(ProviderAdapter):
    """OpenAI chat completions provider for text content."""

    capabilities = frozenset({Capability.TEXT})
    default_base_url = "https://api.openai.com/v1"

    # Dollars per 1K tokens, blended prompt/completion
    COST_PER_1K_TOKENS: ClassVar[dict[str, float]] = {
        "gpt-4o": 0.005,
        "gpt-4o-mini": 0.0006,
        "gpt-4-turbo": 0.03,
        "gpt-4": 0.06,
        "gpt-3.5-turbo": 0.002,
        "gpt-3.5-turbo-16k": 0.004,
    }
    CHARS_PER_TOKEN: ClassVar[int] = 4

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            api_key=api_key or settings.openai_api_key,
            base_url=base_url,
            timeout=timeout,
            transport=transport,
        )
        self.model = model or settings.openai_model

    @property
    def name(self) -> str:
        return "openai"

    async def _complete(
        self,
        system: str,
        prompt: str,
        max_tokens: int,
        temperature: float = 0.7,
    ) -> tuple[dict[str, Any], dict[str, int]]:
        """Run one JSON-mode chat completion and decode its content."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "temperature": temperature,
            "max_tokens": max_tokens,
            "response_format": {"type": "json_object"},
        }

        logger.debug("openai_request", model=self.model, max_tokens=max_tokens)
        data = await self._request("POST", "/chat/completions", json=payload)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(
                "Malformed completion returned by OpenAI",
                provider=self.name,
                payload=data,
            ) from e

        usage = data.get("usage") or {}
        usage = {
            "prompt_tokens": usage.get("prompt_tokens", 0),
            "completion_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
        }
        logger.info("openai_response", model=self.model, tokens_used=usage["total_tokens"])

        try:
            parsed = json.loads(content)
        except (json.JSONDecodeError, TypeError) as e:
            raise ProviderError(
                "OpenAI returned content that is not valid JSON",
                provider=self.name,
                payload=content,
            ) from e
        if not isinstance(parsed, dict):
            raise ProviderError(
                "OpenAI returned an unexpected JSON shape",
                provider=self.name,
                payload=parsed,
            )
        return parsed, usage

    async def _generate_blog(self, request: BlogGenerationRequest) -> BlogPost:
        target_words = request.length.target_words
        prompt = (
            f"Write a {request.tone} blog post about: {request.topic}\n"
            f"Target length: about {target_words} words."
        )
        if request.keywords:
            prompt += f"\nNaturally include these keywords: {', '.join(request.keywords)}"
        if request.include_images:
            prompt += "\nMark good spots for images with [IMAGE: description] placeholders."

        # ~1.5 tokens per word leaves room for Markdown and the JSON envelope
        data, usage = await self._complete(
            BLOG_SYSTEM_PROMPT,
            prompt,
            max_tokens=min(int(target_words * 1.5) + 500, 4096),
        )

        content = str(data.get("content") or "")
        if not content:
            raise ProviderError(
                "OpenAI returned an empty blog post",
                provider=self.name,
                payload=data,
            )
        word_count = len(content.split())

        return BlogPost(
            title=str(data.get("title") or request.topic),
            content=content,
            excerpt=str(data.get("excerpt") or content[:200]),
            keywords=list(data.get("keywords") or request.keywords),
            word_count=word_count,
            read_time_minutes=max(1, math.ceil(word_count / WORDS_PER_MINUTE)),
            cost_estimate=self.estimate_text_cost(usage["total_tokens"], self.model),
            usage=usage,
        )

    async def _generate_social_posts(self, request: SocialGenerationRequest) -> SocialPostsResult:
        platforms = ", ".join(str(p) for p in request.platforms)
        prompt = f"Write one post for each of these platforms: {platforms}\nTopic: {request.topic}"
        if request.tone:
            prompt += f"\nTone: {request.tone}"
        prompt += "\nInclude relevant hashtags." if request.hashtags else "\nDo not use hashtags."
        prompt += "\nUse emojis where they fit." if request.emojis else "\nDo not use emojis."

        data, usage = await self._complete(SOCIAL_SYSTEM_PROMPT, prompt, max_tokens=1500)

        by_platform: dict[str, dict[str, Any]] = {}
        for item in data.get("posts") or []:
            if isinstance(item, dict) and item.get("platform"):
                by_platform.setdefault(str(item["platform"]).lower(), item)

        missing = [str(p) for p in request.platforms if str(p) not in by_platform]
        if missing:
            raise ProviderError(
                f"OpenAI did not return posts for: {', '.join(missing)}",
                provider=self.name,
                payload=data,
            )

        posts = []
        for platform in request.platforms:
            item = by_platform[str(platform)]
            hashtags = [str(h) for h in item.get("hashtags") or []] if request.hashtags else []
            posts.append(
                SocialPost(
                    platform=str(platform),
                    content=str(item.get("content", ""))[: PLATFORM_CHAR_LIMITS[platform]],
                    hashtags=hashtags,
                )
            )

        return SocialPostsResult(
            posts=posts,
            cost_estimate=self.estimate_text_cost(usage["total_tokens"], self.model),
            usage=usage,
        )

    @classmethod
    def estimate_tokens(cls, text: str) -> int:
        """Rough token count for ``text``."""
        return max(1, math.ceil(len(text) / cls.CHARS_PER_TOKEN))

    @classmethod
    def estimate_text_cost(cls, tokens: int, model: str | None = None) -> float:
        """Estimated price in dollars for ``tokens`` on ``model``."""
        rate = cls.COST_PER_1K_TOKENS.get(model or settings.openai_model)
        if rate is None:
            rate = cls.COST_PER_1K_TOKENS["gpt-4o-mini"]
        return round(tokens / 1000 * rate, 6)

    async def health_check(self) -> bool:
        """Check if OpenAI API is accessible."""
        if not self.api_key:
            return False
        try:
            await self._request("GET", "/models", timeout=10.0)
            return True
        except GenerationError as e:
            logger.error("openai_health_check_failed", error=str(e))
            return False
