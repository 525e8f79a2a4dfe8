"""Anthropic Claude translation backend."""

import os
import time
import logging
from typing import Optional

try:
    import anthropic
    from anthropic import Anthropic
    HAS_ANTHROPIC = True
except ImportError:
    HAS_ANTHROPIC = False

from ..base import TranslationBackend, TranslationRequest, TranslationResponse, extract_error_message
from ...core.exceptions import (
    ApiConnectionError, ApiError, InvalidResponseError, EmptyTranslationError
)

logger = logging.getLogger(__name__)


class AnthropicBackend(TranslationBackend):
    """Anthropic Claude-based translation backend."""

    provider = "claude"
    display_name = "Claude"
    default_model = "claude-3-haiku-20240307"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        base_url: Optional[str] = None
    ):
        if not HAS_ANTHROPIC:
            raise ImportError("anthropic package not installed. Run: pip install anthropic")

        # Support custom base URL for third-party gateways
        base_url = base_url or os.getenv("ANTHROPIC_API_BASE_URL")
        super().__init__(api_key, model, timeout, max_retries)

        if self.api_key:
            client_kwargs = {
                "api_key": self.api_key,
                "timeout": self.timeout,
                "max_retries": self.max_retries,
            }
            if base_url:
                # The SDK appends /v1 itself
                if base_url.endswith("/v1"):
                    base_url = base_url[:-3]
                elif base_url.endswith("/v1/"):
                    base_url = base_url[:-4]
                client_kwargs["base_url"] = base_url
                logger.info(f"Using custom Anthropic API endpoint: {base_url}")

            self.client = Anthropic(**client_kwargs)
        else:
            self.client = None

    def is_available(self) -> bool:
        """Check if backend is available and configured."""
        return bool(self.api_key) and self.client is not None

    def translate(self, request: TranslationRequest) -> TranslationResponse:
        """Translate synchronously through the messages API."""
        if not self.client:
            raise ApiError(self.provider, "Claude API key not configured")

        start_time = time.time()

        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=request.max_tokens,
                temperature=request.temperature,
                system=request.system_prompt,
                messages=[{"role": "user", "content": request.user_prompt}]
            )
        except anthropic.APIConnectionError as e:
            logger.warning(f"Claude connection failed: {e}")
            raise ApiConnectionError(self.provider, e) from e
        except anthropic.APIStatusError as e:
            message = extract_error_message(e) or "Claude API error"
            logger.warning(f"Claude returned {e.status_code}: {message}")
            raise ApiError(self.provider, message, e.status_code) from e
        except anthropic.APIError as e:
            logger.warning(f"Claude response rejected by the client: {e}")
            raise InvalidResponseError(self.provider) from e

        try:
            content = response.content[0].text
        except (AttributeError, IndexError, TypeError) as e:
            raise InvalidResponseError(self.provider) from e
        if not isinstance(content, str):
            raise InvalidResponseError(self.provider)

        text = content.strip()
        if not text:
            raise EmptyTranslationError(self.provider)

        return TranslationResponse(
            text=text,
            backend=self.provider,
            model=self.model,
            latency=time.time() - start_time,
            metadata={"stop_reason": getattr(response, "stop_reason", None)}
        )
