"""
A/B provider comparison.

Runs the full document pipeline (forward translation plus quality loop) once
per provider, keeps every outcome including failures, and lets an operator
promote one provider's result to the document's pending approval.
"""

from __future__ import annotations
import logging
import uuid
from typing import Any, List, Optional

from blocktrans.core.models import (
    Comparison, ComparisonStatus, ProviderResult, PendingApproval
)
from blocktrans.core.exceptions import (
    BlockTransError, FeatureUnavailableError, InsufficientProvidersError,
    ComparisonNotFoundError, ProviderResultNotFoundError, ComparisonAlreadySelectedError
)
from blocktrans.storage.comparisons import ComparisonStore
from blocktrans.storage.approvals import ApprovalStore

logger = logging.getLogger(__name__)

PROVIDERS_PER_COMPARISON = 2


def new_comparison_id() -> str:
    return f"ab_{uuid.uuid4().hex}"


class ABComparator:
    """Compares two providers on the same document."""

    def __init__(
        self,
        translator,
        block_translator,
        evaluator,
        comparisons: ComparisonStore,
        approvals: ApprovalStore,
        license_gate
    ):
        self.translator = translator
        self.block_translator = block_translator
        self.evaluator = evaluator
        self.comparisons = comparisons
        self.approvals = approvals
        self.license_gate = license_gate

    def run_comparison(self, document_id: Any, target_language: str) -> Comparison:
        """
        Translate ``document_id`` with the first two available providers.

        A provider failure is recorded as an error entry and does not affect
        the other provider's run.

        Raises:
            FeatureUnavailableError: the license gate is closed
            InsufficientProvidersError: fewer than two providers have keys
        """
        if not self.license_gate.is_feature_available():
            logger.info("A/B comparison refused: features unavailable")
            raise FeatureUnavailableError()

        available = list(self.translator.get_available_providers())
        if len(available) < PROVIDERS_PER_COMPARISON:
            raise InsufficientProvidersError(len(available))
        providers: List[str] = available[:PROVIDERS_PER_COMPARISON]

        comparison = Comparison(
            comparison_id=new_comparison_id(),
            document_id=document_id,
            target_language=target_language,
            providers=providers,
        )

        for provider in providers:
            comparison.results[provider] = self._run_provider(document_id, target_language, provider)

        self.comparisons.save(comparison)
        logger.info(f"A/B comparison {comparison.comparison_id} saved for document {document_id}")
        return comparison

    def _run_provider(self, document_id: Any, target_language: str, provider: str) -> ProviderResult:
        try:
            forward = self.block_translator.translate_post_blocks(document_id, target_language, provider)
            report = self.evaluator.evaluate(forward, provider)
        except BlockTransError as e:
            logger.warning(f"A/B run with {provider} failed: {e.message}")
            return ProviderResult(provider_name=provider, error=e.message, error_code=e.code)

        return ProviderResult(
            provider_name=provider,
            translation=forward.to_dict(),
            back_translation=report.back_translation,
            quality_score=report.quality_score,
        )

    def get_comparison(self, comparison_id: str) -> Comparison:
        """
        Raises:
            ComparisonNotFoundError: unknown or expired id
        """
        comparison = self.comparisons.get(comparison_id)
        if comparison is None:
            raise ComparisonNotFoundError(comparison_id)
        return comparison

    def select_result(self, comparison_id: str, provider: str) -> PendingApproval:
        """
        Promote one provider's result to the document's pending approval.

        Raises:
            ComparisonNotFoundError: unknown or expired id
            ComparisonAlreadySelectedError: a result was already selected
            ProviderResultNotFoundError: no usable result for ``provider``
        """
        comparison = self.get_comparison(comparison_id)

        if comparison.status == ComparisonStatus.SELECTED:
            raise ComparisonAlreadySelectedError(comparison_id, comparison.selected_provider)

        result: Optional[ProviderResult] = comparison.results.get(provider)
        if result is None or result.is_error:
            raise ProviderResultNotFoundError(comparison_id, provider)

        pending = PendingApproval(
            translation_result=result.translation,
            back_translation=result.back_translation,
            provider=provider,
            quality_score=result.quality_score,
            comparison_id=comparison_id,
        )
        self.approvals.set_pending(comparison.document_id, pending)

        comparison.status = ComparisonStatus.SELECTED
        comparison.selected_provider = provider
        self.comparisons.save(comparison)

        logger.info(f"Selected {provider} for comparison {comparison_id}")
        return pending
