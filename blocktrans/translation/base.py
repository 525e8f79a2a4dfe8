"""
Base translation backend interface.
All provider backends must inherit from TranslationBackend.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Any
from dataclasses import dataclass


@dataclass
class TranslationRequest:
    """Request for translation."""
    text: str
    target_language: str
    system_prompt: str
    user_prompt: str
    # Deterministic output
    temperature: float = 0.0
    max_tokens: int = 2000


@dataclass
class TranslationResponse:
    """Response from translation backend."""
    text: str
    backend: str
    model: str
    latency: float = 0.0
    metadata: Dict = None


class TranslationBackend(ABC):
    """Abstract base class for translation backends."""

    provider = "base"
    display_name = "Base"
    default_model = ""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 2
    ):
        self.api_key = api_key
        self.model = model or self.default_model
        self.timeout = timeout
        self.max_retries = max_retries
        self.name = self.__class__.__name__

    @abstractmethod
    def translate(self, request: TranslationRequest) -> TranslationResponse:
        """
        Translate text synchronously.

        Args:
            request: Translation request with prompts and parameters

        Returns:
            TranslationResponse with the trimmed translation

        Raises:
            ApiConnectionError, ApiError, InvalidResponseError,
            EmptyTranslationError
        """
        pass

    def is_available(self) -> bool:
        """Check if backend is available and configured."""
        return bool(self.api_key)

    def get_info(self) -> Dict:
        """Get backend information."""
        return {
            "name": self.name,
            "provider": self.provider,
            "model": self.model,
            "available": self.is_available()
        }


def extract_error_message(error: Any) -> Optional[str]:
    """Pull the provider's own message out of an SDK status error body."""
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        if isinstance(body.get("error"), dict):
            body = body["error"]
        message = body.get("message")
        if isinstance(message, str) and message.strip():
            return message.strip()
    return None
