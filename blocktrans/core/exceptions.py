"""
Exception hierarchy for blocktrans.

Every failure the translation core can produce is one of these typed errors.
Each class carries a stable ``code`` so wrappers (CLI, HTTP, admin screens)
can map failures without string matching.
"""

from __future__ import annotations
from typing import Optional, Dict, Any


class BlockTransError(Exception):
    """Base exception for all blocktrans errors."""

    code = "blocktrans_error"
    default_message = "Translation operation failed"

    def __init__(
        self,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
        suggestion: Optional[str] = None
    ):
        """
        Initialize error.

        Args:
            message: Human-readable error message
            details: Additional error details
            recoverable: Whether the caller can retry or correct the input
            suggestion: Suggested fix or workaround
        """
        message = message or self.default_message
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        self.suggestion = suggestion

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "suggestion": self.suggestion
        }

    def __str__(self) -> str:
        result = self.message
        if self.suggestion:
            result += f"\nSuggestion: {self.suggestion}"
        return result


# Availability

class FeatureUnavailableError(BlockTransError):
    """Raised when the licensing/expiry gate is closed."""

    code = "feature_unavailable"
    default_message = "Translation features are currently unavailable"

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message,
            suggestion="Check the license expiry date and that at least one API key is configured."
        )


class NoApiKeyError(BlockTransError):
    """Raised when the chosen provider has no usable credential."""

    code = "no_api_key"
    default_message = "No API key is configured"

    def __init__(self, provider: str):
        super().__init__(
            f"No API key is configured for provider '{provider}'",
            details={"provider": provider},
            suggestion=f"Set it with: blocktrans keys set {provider} <key>"
        )
        self.provider = provider


class InvalidProviderError(BlockTransError):
    """Raised for a provider id that is not registered."""

    code = "invalid_provider"
    default_message = "Invalid provider"

    def __init__(self, provider: str, valid_providers: Optional[list] = None):
        suggestion = None
        if valid_providers:
            suggestion = f"Valid providers: {', '.join(valid_providers)}"
        super().__init__(
            f"Invalid provider: '{provider}'",
            details={"provider": provider, "valid_providers": valid_providers},
            suggestion=suggestion
        )
        self.provider = provider


class InsufficientProvidersError(BlockTransError):
    """Raised when an A/B comparison has fewer than two usable providers."""

    code = "insufficient_providers"
    default_message = "A/B comparison requires at least two providers with API keys"

    def __init__(self, available: int):
        super().__init__(
            details={"available": available},
            suggestion="Configure API keys for at least two providers."
        )
        self.available = available


# Input

class EmptyTextError(BlockTransError):
    """Raised when there is nothing left to translate after normalization."""

    code = "empty_text"
    default_message = "There is no text to translate"


class PostNotFoundError(BlockTransError):
    """Raised when the document store has no document for an id."""

    code = "post_not_found"
    default_message = "Document not found"

    def __init__(self, document_id: Any):
        super().__init__(
            f"Document not found: {document_id}",
            details={"document_id": document_id}
        )
        self.document_id = document_id


class NoBlocksFoundError(BlockTransError):
    """Raised when a document parses to an empty block list."""

    code = "no_blocks"
    default_message = "No blocks found in document"


class InvalidBlockStructureError(BlockTransError):
    """Raised when a block tree or block document is malformed."""

    code = "invalid_block_structure"
    default_message = "Invalid block structure"


# Quota

class DailyLimitExceededError(BlockTransError):
    """Raised when the daily translation quota is used up."""

    code = "daily_limit_exceeded"
    default_message = "The daily translation limit has been reached"

    def __init__(self, usage: int, limit: int):
        super().__init__(details={"usage": usage, "limit": limit})


class MonthlyLimitExceededError(BlockTransError):
    """Raised when the monthly translation quota is used up."""

    code = "monthly_limit_exceeded"
    default_message = "The monthly translation limit has been reached"

    def __init__(self, usage: int, limit: int):
        super().__init__(details={"usage": usage, "limit": limit})


# Remote

class ApiConnectionError(BlockTransError):
    """Raised when the provider cannot be reached (network error or timeout)."""

    code = "api_connection_failed"
    default_message = "Failed to connect to the translation API"

    def __init__(self, provider: str, original_error: Optional[Exception] = None):
        super().__init__(
            f"Failed to connect to the {provider} API",
            details={
                "provider": provider,
                "original_error": str(original_error) if original_error else None
            },
            suggestion="Check network connectivity and retry."
        )
        self.provider = provider
        self.original_error = original_error


class ApiError(BlockTransError):
    """Raised for a non-2xx answer; carries the provider's own message when it sent one."""

    code = "api_error"
    default_message = "The translation API returned an error"

    def __init__(self, provider: str, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(
            message or f"{provider} API error",
            details={"provider": provider, "status_code": status_code}
        )
        self.provider = provider
        self.status_code = status_code


class InvalidResponseError(BlockTransError):
    """Raised when a successful response lacks the expected payload shape."""

    code = "invalid_response"
    default_message = "Received an invalid response from the translation API"

    def __init__(self, provider: str):
        super().__init__(
            f"Received an invalid response from the {provider} API",
            details={"provider": provider}
        )
        self.provider = provider


class EmptyTranslationError(BlockTransError):
    """Raised when the provider answered successfully with blank text."""

    code = "empty_translation"
    default_message = "The translation API returned an empty translation"

    def __init__(self, provider: str):
        super().__init__(
            f"The {provider} API returned an empty translation",
            details={"provider": provider}
        )
        self.provider = provider


# Parsing

class HtmlParseError(BlockTransError):
    """Raised when an HTML fragment cannot be parsed for text-node walking."""

    code = "html_parse_error"
    default_message = "Failed to parse HTML"


# Lookup

class ComparisonNotFoundError(BlockTransError):
    """Raised for an unknown or expired comparison id."""

    code = "comparison_not_found"
    default_message = "A/B comparison not found"

    def __init__(self, comparison_id: str):
        super().__init__(
            f"A/B comparison not found: {comparison_id}",
            details={"comparison_id": comparison_id},
            suggestion="Comparisons expire 24 hours after they are created."
        )
        self.comparison_id = comparison_id


class ProviderResultNotFoundError(BlockTransError):
    """Raised when selecting a provider that has no usable result in a comparison."""

    code = "provider_not_found"
    default_message = "No result for the selected provider"

    def __init__(self, comparison_id: str, provider: str):
        super().__init__(
            f"No result for provider '{provider}' in comparison {comparison_id}",
            details={"comparison_id": comparison_id, "provider": provider}
        )
        self.comparison_id = comparison_id
        self.provider = provider


class ComparisonAlreadySelectedError(BlockTransError):
    """Raised when a comparison has already moved to the selected state."""

    code = "comparison_already_selected"
    default_message = "A result has already been selected for this comparison"

    def __init__(self, comparison_id: str, selected_provider: Optional[str]):
        super().__init__(
            f"Comparison {comparison_id} already selected '{selected_provider}'",
            details={"comparison_id": comparison_id, "selected_provider": selected_provider}
        )


class PendingNotFoundError(BlockTransError):
    """Raised when approving a document that has no pending translation."""

    code = "pending_not_found"
    default_message = "No pending translation to approve"

    def __init__(self, document_id: Any):
        super().__init__(
            f"No pending translation for document {document_id}",
            details={"document_id": document_id}
        )


# Configuration / licensing

class ConfigurationError(BlockTransError):
    """Raised when configuration is invalid."""

    code = "configuration_error"
    default_message = "Invalid configuration"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        invalid_value: Optional[Any] = None,
        valid_values: Optional[list] = None
    ):
        suggestion = None
        if config_key and valid_values:
            suggestion = f"Valid values for {config_key}: {', '.join(map(str, valid_values))}"
        elif config_key:
            suggestion = f"Check configuration for '{config_key}'"

        super().__init__(
            message,
            details={
                "config_key": config_key,
                "invalid_value": invalid_value,
                "valid_values": valid_values
            },
            suggestion=suggestion
        )
        self.config_key = config_key


class ExtensionAlreadyUsedError(BlockTransError):
    """Raised when the one-time expiry extension was already consumed."""

    code = "extension_used"
    default_message = "The expiry extension can only be used once"


class NoExpiryError(BlockTransError):
    """Raised when extending an expiry that was never set."""

    code = "no_expiry"
    default_message = "No expiry date is set"
