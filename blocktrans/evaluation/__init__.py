"""Translation quality evaluation."""

from .quality import (
    QualityEvaluator,
    calculate_quality_score,
    text_similarity,
    structure_preserved,
)

__all__ = [
    'QualityEvaluator',
    'calculate_quality_score',
    'text_similarity',
    'structure_preserved',
]
