"""
Service facade for blocktrans.

``TranslationPipeline`` wires the translator, the block translator, the
quality loop, the A/B comparator and the stores together and exposes the
public operations. Every collaborator can be injected; anything not passed
in is built from :class:`PipelineConfig`.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import logging

from blocktrans.core.models import (
    Block, TranslationUnit, BackTranslationResult, BlockTranslationResult,
    DocumentTranslationResult, QualityReport, Comparison, PendingApproval, UsageStats
)
from blocktrans.core.exceptions import PendingNotFoundError
from blocktrans.core.license import LicenseGate
from blocktrans.storage import (
    DocumentStore, CredentialStore, PageGenerator, ConfigCredentialStore,
    DirectoryDocumentStore, UsageCounterStore, ComparisonStore, ApprovalStore
)
from blocktrans.translation.backends import BACKENDS
from blocktrans.translation.html_walker import HtmlTextWalker
from blocktrans.translation.translator import Translator, BackendFactory
from blocktrans.translation.block_translator import BlockTranslator
from blocktrans.evaluation.quality import QualityEvaluator
from blocktrans.comparison.ab_compare import ABComparator

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Complete configuration for the translation pipeline."""

    # Language / provider settings
    default_provider: str = "openai"
    source_language: str = "ja"
    models: Dict[str, str] = field(default_factory=dict)

    # Remote call settings
    max_tokens: int = 2000
    temperature: float = 0.0
    timeout: float = 60.0
    max_retries: int = 2

    # Block handling
    translatable_blocks_only: bool = False
    translate_html_alt: bool = True

    # Quota
    daily_limit: int = 100
    monthly_limit: int = 3000

    # A/B comparisons expire after 24 hours
    comparison_ttl: int = 86400

    # Storage
    storage_dir: Path = Path(".cache/blocktrans")
    documents_dir: Optional[Path] = None

    # License
    expiry_date: Optional[Any] = None
    expiry_preset_days: int = 30

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> PipelineConfig:
        """Build from the nested dictionary returned by ``load_config``."""
        translation = config.get("translation", {})
        providers = config.get("providers", {})
        limits = config.get("limits", {})
        storage = config.get("storage", {})
        license_section = config.get("license", {})
        documents_dir = storage.get("documents_directory")

        return cls(
            default_provider=translation.get("default_provider", "openai"),
            source_language=translation.get("source_language", "ja"),
            models={
                key: section["model"]
                for key, section in providers.items()
                if isinstance(section, dict) and section.get("model")
            },
            max_tokens=int(translation.get("max_tokens", 2000)),
            temperature=float(translation.get("temperature", 0.0)),
            timeout=float(translation.get("timeout", 60)),
            max_retries=int(translation.get("max_retries", 2)),
            translatable_blocks_only=bool(translation.get("translatable_blocks_only", False)),
            translate_html_alt=bool(translation.get("translate_html_alt", True)),
            daily_limit=int(limits.get("daily", 100)),
            monthly_limit=int(limits.get("monthly", 3000)),
            comparison_ttl=int(config.get("comparison", {}).get("ttl_seconds", 86400)),
            storage_dir=Path(storage.get("directory", ".cache/blocktrans")),
            documents_dir=Path(documents_dir) if documents_dir else None,
            expiry_date=license_section.get("expiry_date"),
            expiry_preset_days=int(license_section.get("expiry_preset_days", 30)),
        )

    def validate(self) -> List[str]:
        """Validate configuration and return any issues."""
        issues = []

        if self.default_provider not in BACKENDS:
            issues.append(
                f"default_provider must be one of {', '.join(BACKENDS)} (got {self.default_provider!r})"
            )
        unknown_models = set(self.models) - set(BACKENDS)
        if unknown_models:
            issues.append(f"Models configured for unknown providers: {', '.join(sorted(unknown_models))}")
        if self.max_tokens < 1:
            issues.append("max_tokens must be >= 1")
        if not 0 <= self.temperature <= 2:
            issues.append("temperature must be between 0 and 2")
        if self.timeout <= 0:
            issues.append("timeout must be positive")
        if self.max_retries < 0:
            issues.append("max_retries must be >= 0")
        if self.daily_limit < 0 or self.monthly_limit < 0:
            issues.append("usage limits must be >= 0")
        if self.comparison_ttl <= 0:
            issues.append("comparison_ttl must be positive")
        if self.expiry_preset_days < 1:
            issues.append("expiry_preset_days must be >= 1")

        return issues


class TranslationPipeline:
    """Public surface of the translation service."""

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        credentials: Optional[CredentialStore] = None,
        document_store: Optional[DocumentStore] = None,
        usage: Optional[UsageCounterStore] = None,
        comparisons: Optional[ComparisonStore] = None,
        approvals: Optional[ApprovalStore] = None,
        license_gate: Optional[LicenseGate] = None,
        backend_factory: Optional[BackendFactory] = None,
        page_generator: Optional[PageGenerator] = None
    ):
        """
        Initialize pipeline.

        Args:
            config: Pipeline configuration (defaults used when omitted)
            credentials: API key store
            document_store: Source of documents for whole-document operations
            usage: Quota counters
            comparisons: A/B comparison store
            approvals: Pending / approved translation store
            license_gate: Licensing / expiry gate
            backend_factory: Override for building provider backends
            page_generator: Publisher called when a translation is approved
        """
        self.config = config or PipelineConfig()
        storage_dir = Path(self.config.storage_dir)

        self.credentials = credentials or ConfigCredentialStore({})
        if document_store is None and self.config.documents_dir is not None:
            document_store = DirectoryDocumentStore(self.config.documents_dir)
        self.document_store = document_store
        self.usage = usage or UsageCounterStore(
            storage_dir / "usage",
            daily_limit=self.config.daily_limit,
            monthly_limit=self.config.monthly_limit,
        )
        self.comparisons = comparisons or ComparisonStore(
            storage_dir / "comparisons", ttl=self.config.comparison_ttl
        )
        self.approvals = approvals or ApprovalStore(storage_dir / "approvals")
        self.license_gate = license_gate or LicenseGate(
            storage_dir / "license",
            self.credentials,
            expiry_preset_days=self.config.expiry_preset_days,
            initial_expiry=self.config.expiry_date,
        )
        self.page_generator = page_generator

        self.translator = Translator(
            credentials=self.credentials,
            usage=self.usage,
            license_gate=self.license_gate,
            default_provider=self.config.default_provider,
            models=self.config.models,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            timeout=self.config.timeout,
            max_retries=self.config.max_retries,
            backend_factory=backend_factory,
        )
        self.block_translator = BlockTranslator(
            self.translator,
            document_store=self.document_store,
            walker=HtmlTextWalker(translate_alt=self.config.translate_html_alt),
            translatable_blocks_only=self.config.translatable_blocks_only,
        )
        self.evaluator = QualityEvaluator(
            self.translator, self.block_translator, source_language=self.config.source_language
        )
        self.comparator = ABComparator(
            self.translator,
            self.block_translator,
            self.evaluator,
            self.comparisons,
            self.approvals,
            self.license_gate,
        )

        # Expired licenses purge their keys before anything else runs
        self.license_gate.check_expiry()

    @classmethod
    def from_config(cls, config: Dict[str, Any], config_path: Optional[str] = None, **kwargs) -> TranslationPipeline:
        """Build a pipeline from a ``load_config`` dictionary."""
        pipeline_config = PipelineConfig.from_dict(config)
        kwargs.setdefault("credentials", ConfigCredentialStore(config, config_path=config_path))
        return cls(pipeline_config, **kwargs)

    # Translation

    def translate(self, text: str, target_language: str, provider: Optional[str] = None) -> TranslationUnit:
        return self.translator.translate(text, target_language, provider)

    def back_translate(
        self,
        text: str,
        source_language: Optional[str] = None,
        provider: Optional[str] = None
    ) -> BackTranslationResult:
        return self.translator.back_translate(text, source_language or self.config.source_language, provider)

    def translate_block(self, block: Block, target_language: str, provider: Optional[str] = None) -> BlockTranslationResult:
        return self.block_translator.translate_block(block, target_language, provider)

    def translate_post_blocks(
        self,
        document_id: Any,
        target_language: str,
        provider: Optional[str] = None
    ) -> DocumentTranslationResult:
        return self.block_translator.translate_post_blocks(document_id, target_language, provider)

    def evaluate(self, forward, provider: Optional[str] = None) -> QualityReport:
        return self.evaluator.evaluate(forward, provider)

    def translate_with_quality(
        self,
        document_id: Any,
        target_language: str,
        provider: Optional[str] = None
    ) -> Tuple[DocumentTranslationResult, QualityReport]:
        """Translate a document, run the quality loop and store the result as pending."""
        forward = self.translate_post_blocks(document_id, target_language, provider)
        report = self.evaluate(forward, provider)
        self.approvals.set_pending(document_id, PendingApproval(
            translation_result=forward.to_dict(),
            back_translation=report.back_translation,
            provider=forward.provider,
            quality_score=report.quality_score,
        ))
        return forward, report

    # A/B comparison

    def run_ab_comparison(self, document_id: Any, target_language: str) -> Comparison:
        return self.comparator.run_comparison(document_id, target_language)

    def select_ab_result(self, comparison_id: str, provider: str) -> PendingApproval:
        return self.comparator.select_result(comparison_id, provider)

    def get_comparison(self, comparison_id: str) -> Comparison:
        return self.comparator.get_comparison(comparison_id)

    # Approval

    def get_pending(self, document_id: Any) -> Optional[PendingApproval]:
        return self.approvals.get_pending(document_id)

    def approve_translation(self, document_id: Any, target_language: Optional[str] = None) -> PendingApproval:
        """
        Approve the document's pending translation.

        When a page generator is configured the page is created first; the
        pending record moves to the approved store only once that succeeds.

        Raises:
            PendingNotFoundError: nothing pending (for ``target_language``)
        """
        pending = self.approvals.get_pending(document_id)
        if pending is None:
            raise PendingNotFoundError(document_id)

        language = pending.target_language
        if target_language and language != target_language:
            raise PendingNotFoundError(document_id)

        if self.page_generator is not None:
            self.page_generator.create_translated_page(document_id, language, pending)

        self.approvals.set_approved(document_id, language, pending)
        self.approvals.delete_pending(document_id)
        logger.info(f"Approved {language} translation of document {document_id} ({pending.provider})")

        return pending

    def get_approved(self, document_id: Any, target_language: str) -> Optional[PendingApproval]:
        return self.approvals.get_approved(document_id, target_language)

    # Status / administration

    def get_available_providers(self) -> Dict[str, str]:
        return self.translator.get_available_providers()

    def get_usage_stats(self) -> UsageStats:
        return self.translator.get_usage_stats()

    def set_api_key(self, provider: str, api_key: str) -> None:
        """Store a key for ``provider``, lifting any revocation left by expiry or a stop."""
        self.license_gate.restore_provider(provider)
        self.credentials.set_key(provider, api_key)

    def emergency_stop(self) -> None:
        self.license_gate.emergency_stop()

    def close(self) -> None:
        for store in (self.usage, self.comparisons, self.approvals, self.license_gate):
            store.close()
