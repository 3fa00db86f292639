"""Scorer interfaces and implementations for ensemble beam search.

Exports:
    Scorer: Interface for scoring sources.
    ScorerEnsemble: Weighted collection of scorers stepped together.
    ScoringState: Interface for the per-position state of a scorer.
    ScoringStateT: Type variable bound to `ScoringState`.
"""

from .ensemble import ScorerEnsemble
from .interfaces import Scorer, ScoringState, ScoringStateT

__all__ = ["Scorer", "ScorerEnsemble", "ScoringState", "ScoringStateT"]
