"""
Single-text translation through the configured providers.

Forward translation is gated by the license, charged against the usage quota
and only counted when the remote call succeeds. Back-translation goes through
the same gate and provider checks but is never charged.
"""

from __future__ import annotations
import html
import logging
import re
from typing import Callable, Dict, Optional, Tuple

from blocktrans.core.models import TranslationUnit, BackTranslationResult, UsageStats
from blocktrans.core.exceptions import (
    FeatureUnavailableError, InvalidProviderError, NoApiKeyError, EmptyTextError,
    BlockTransError
)
from blocktrans.storage.base import CredentialStore
from blocktrans.storage.usage import UsageCounterStore
from blocktrans.translation.base import TranslationBackend, TranslationRequest
from blocktrans.translation.backends import BACKENDS, create_backend
from blocktrans.translation.prompts import build_prompt

logger = logging.getLogger(__name__)

WHITESPACE_PATTERN = re.compile(r"\s+")

BackendFactory = Callable[..., TranslationBackend]


def normalize_text(text: str) -> str:
    """Decode HTML entities, collapse whitespace runs and trim."""
    text = html.unescape(text or "")
    text = WHITESPACE_PATTERN.sub(" ", text)
    return text.strip()


class Translator:
    """Translates plain or HTML-bearing strings with one provider per call."""

    def __init__(
        self,
        credentials: CredentialStore,
        usage: UsageCounterStore,
        license_gate,
        default_provider: str = "openai",
        models: Optional[Dict[str, str]] = None,
        max_tokens: int = 2000,
        temperature: float = 0.0,
        timeout: float = 60.0,
        max_retries: int = 2,
        backend_factory: Optional[BackendFactory] = None
    ):
        """
        Args:
            credentials: API key lookup
            usage: Quota counters
            license_gate: Object exposing ``is_feature_available()``
            default_provider: Provider used when a call names none
            models: Model name per provider key
            max_tokens: Output token cap per call
            temperature: Sampling temperature (0 for deterministic output)
            timeout: Per-request timeout in seconds
            max_retries: SDK retry count
            backend_factory: Builds a backend from ``(provider, api_key, model,
                timeout, max_retries)``; defaults to the SDK backends
        """
        self.credentials = credentials
        self.usage = usage
        self.license_gate = license_gate
        self.default_provider = default_provider
        self.models = models or {}
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self.max_retries = max_retries
        self.backend_factory = backend_factory or create_backend
        self._backends: Dict[Tuple[str, str], TranslationBackend] = {}

    # Public API

    def translate(self, text: str, target_language: str, provider: Optional[str] = None) -> TranslationUnit:
        """
        Translate one string into ``target_language``.

        Raises:
            FeatureUnavailableError, DailyLimitExceededError,
            MonthlyLimitExceededError, InvalidProviderError, NoApiKeyError,
            EmptyTextError, or any remote error from the backend
        """
        self._check_gate()

        reservation = self.usage.reserve()
        try:
            provider = self._resolve_provider(provider)
            api_key = self._require_key(provider)

            normalized = normalize_text(text)
            if not normalized:
                raise EmptyTextError()

            translated = self._call_backend(provider, api_key, normalized, target_language)
        except Exception:
            self.usage.refund(reservation)
            raise

        return TranslationUnit(
            original_text=normalized,
            translated_text=translated,
            target_language=target_language,
            provider=provider,
        )

    def back_translate(self, text: str, source_language: str, provider: Optional[str] = None) -> BackTranslationResult:
        """
        Translate ``text`` back into ``source_language`` for quality checks.

        Never checks or charges quota.
        """
        self._check_gate()
        provider = self._resolve_provider(provider)
        api_key = self._require_key(provider)

        if not text or not text.strip():
            raise EmptyTextError()

        back_translated = self._call_backend(provider, api_key, text, source_language)

        return BackTranslationResult(
            translated_text=text,
            back_translated_text=back_translated,
            source_language=source_language,
            provider=provider,
        )

    def get_available_providers(self) -> Dict[str, str]:
        """Providers with a usable key, in registration order, mapped to display names."""
        return {
            key: backend_cls.display_name
            for key, backend_cls in BACKENDS.items()
            if self.credentials.get_key(key)
        }

    def get_usage_stats(self) -> UsageStats:
        return self.usage.get_usage_stats()

    # Internals

    def _check_gate(self) -> None:
        if not self.license_gate.is_feature_available():
            logger.info("Translation refused: features unavailable")
            raise FeatureUnavailableError()

    def _resolve_provider(self, provider: Optional[str]) -> str:
        provider = provider or self.default_provider
        if provider not in BACKENDS:
            raise InvalidProviderError(provider, list(BACKENDS))
        return provider

    def _require_key(self, provider: str) -> str:
        api_key = self.credentials.get_key(provider)
        if not api_key:
            logger.info(f"Translation refused: no API key for {provider}")
            raise NoApiKeyError(provider)
        return api_key

    def _get_backend(self, provider: str, api_key: str) -> TranslationBackend:
        cache_key = (provider, api_key)
        if cache_key not in self._backends:
            self._backends[cache_key] = self.backend_factory(
                provider,
                api_key,
                model=self.models.get(provider),
                timeout=self.timeout,
                max_retries=self.max_retries,
            )
        return self._backends[cache_key]

    def _call_backend(self, provider: str, api_key: str, text: str, target_language: str) -> str:
        system_prompt, user_prompt = build_prompt(text, target_language)
        request = TranslationRequest(
            text=text,
            target_language=target_language,
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        backend = self._get_backend(provider, api_key)
        try:
            response = backend.translate(request)
        except BlockTransError as e:
            logger.warning(f"{provider} translation failed: {e.message}")
            raise
        logger.debug(f"{provider} translated {len(text)} chars in {response.latency:.2f}s")
        return response.text
