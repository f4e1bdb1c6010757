"""Provider selection from configuration."""

from burstlet.adapters.base import ProviderAdapter
from burstlet.adapters.hailuoai import HailuoAIProvider
from burstlet.adapters.minimax import MiniMaxProvider
from burstlet.adapters.openai import OpenAIProvider
from burstlet.adapters.stub import StubProvider
from burstlet.config import settings
from burstlet.domain.enums import Capability
from burstlet.errors import ConfigurationError

PROVIDERS: dict[str, type[ProviderAdapter]] = {
    "stub": StubProvider,
    "hailuoai": HailuoAIProvider,
    "openai": OpenAIProvider,
    "minimax": MiniMaxProvider,
}


def configured_provider_name(capability: Capability | str) -> str:
    """Name of the provider configured for ``capability``."""
    capability = Capability(capability)
    if capability == Capability.VIDEO:
        return settings.video_provider.lower()
    if capability == Capability.TEXT:
        return settings.text_provider.lower()
    return settings.audio_provider.lower()


def create_provider(name: str) -> ProviderAdapter:
    """Instantiate a provider by name."""
    try:
        provider_cls = PROVIDERS[name.lower()]
    except KeyError as e:
        raise ConfigurationError(
            f"Unknown provider: {name}",
            details={"available": sorted(PROVIDERS)},
        ) from e
    return provider_cls()


def get_provider(capability: Capability | str, name: str | None = None) -> ProviderAdapter:
    """Get a provider for ``capability``, checked for support and configuration.

    Raises:
        UnsupportedFeatureError: The provider does not declare the capability.
        ConfigurationError: The provider is unknown or missing its credentials.
    """
    provider = create_provider(name or configured_provider_name(capability))
    provider.require(capability)
    provider.validate_config()
    return provider
