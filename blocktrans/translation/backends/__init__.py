"""Translation backend implementations."""

from typing import Dict, Optional, Type

from .openai_backend import OpenAIBackend
from .anthropic_backend import AnthropicBackend
from .deepseek_backend import DeepSeekBackend
from ..base import TranslationBackend

# Registration order is the stable provider order used for listings and A/B runs
BACKENDS: Dict[str, Type[TranslationBackend]] = {
    "openai": OpenAIBackend,
    "claude": AnthropicBackend,
    "deepseek": DeepSeekBackend,
}


def create_backend(
    provider: str,
    api_key: str,
    model: Optional[str] = None,
    timeout: float = 60.0,
    max_retries: int = 2
) -> TranslationBackend:
    """Instantiate the backend registered for ``provider``."""
    backend_cls = BACKENDS[provider]
    return backend_cls(api_key=api_key, model=model, timeout=timeout, max_retries=max_retries)


__all__ = [
    'OpenAIBackend',
    'AnthropicBackend',
    'DeepSeekBackend',
    'BACKENDS',
    'create_backend'
]
