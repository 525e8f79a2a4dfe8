"""OpenAI translation backend."""

import time
import logging
from typing import Optional

try:
    import openai
    from openai import OpenAI
    HAS_OPENAI = True
except ImportError:
    HAS_OPENAI = False

from ..base import TranslationBackend, TranslationRequest, TranslationResponse, extract_error_message
from ...core.exceptions import (
    ApiConnectionError, ApiError, InvalidResponseError, EmptyTranslationError
)

logger = logging.getLogger(__name__)


class OpenAIBackend(TranslationBackend):
    """OpenAI chat-completions translation backend."""

    provider = "openai"
    display_name = "OpenAI GPT"
    default_model = "gpt-3.5-turbo"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        base_url: Optional[str] = None
    ):
        if not HAS_OPENAI:
            raise ImportError("openai package not installed. Run: pip install openai")

        super().__init__(api_key, model, timeout, max_retries)
        self.base_url = base_url

        if self.api_key:
            client_kwargs = {
                "api_key": self.api_key,
                "timeout": self.timeout,
                "max_retries": self.max_retries,
            }
            if base_url:
                client_kwargs["base_url"] = base_url
            self.client = OpenAI(**client_kwargs)
        else:
            self.client = None

    def _build_messages(self, request: TranslationRequest):
        """Build messages for the chat completions API."""
        return [
            {"role": "system", "content": request.system_prompt},
            {"role": "user", "content": request.user_prompt},
        ]

    def translate(self, request: TranslationRequest) -> TranslationResponse:
        """Translate synchronously."""
        if not self.client:
            raise ApiError(self.provider, f"{self.display_name} API key not configured")

        start_time = time.time()

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=self._build_messages(request),
                temperature=request.temperature,
                max_tokens=request.max_tokens
            )
        except openai.APIConnectionError as e:
            # APITimeoutError is a subclass
            logger.warning(f"{self.display_name} connection failed: {e}")
            raise ApiConnectionError(self.provider, e) from e
        except openai.APIStatusError as e:
            message = extract_error_message(e) or f"{self.display_name} API error"
            logger.warning(f"{self.display_name} returned {e.status_code}: {message}")
            raise ApiError(self.provider, message, e.status_code) from e
        except openai.APIError as e:
            # e.g. APIResponseValidationError
            logger.warning(f"{self.display_name} response rejected by the client: {e}")
            raise InvalidResponseError(self.provider) from e

        try:
            content = response.choices[0].message.content
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
            metadata={"finish_reason": getattr(response.choices[0], "finish_reason", None)}
        )
