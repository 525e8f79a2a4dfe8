"""DeepSeek translation backend (OpenAI-compatible API)."""

import os
from typing import Optional

from .openai_backend import OpenAIBackend


class DeepSeekBackend(OpenAIBackend):
    """DeepSeek-based translation backend (uses the OpenAI client)."""

    provider = "deepseek"
    display_name = "DeepSeek"
    default_model = "deepseek-chat"

    BASE_URL = os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com")

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 2,
        base_url: Optional[str] = None
    ):
        # base_url must end with /v1 for OpenAI client compatibility
        base_url = (base_url or self.BASE_URL).rstrip("/")
        if not base_url.endswith("/v1"):
            base_url += "/v1"
        super().__init__(api_key, model, timeout, max_retries, base_url=base_url)
