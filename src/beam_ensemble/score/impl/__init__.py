"""Scorer implementations.

Exports:
    CoveragePenaltyScorer: Penalizes target tokens unseen in the input.
    NeuralModelScorer: Scores with a neural encoder-decoder.
    NeuralScoringState: State of `NeuralModelScorer`.
    PenaltyState: State of the penalty scorers.
    StaticLengthPenaltyScorer: Constant penalty on every non-free token.
"""

from .neural import NeuralModelScorer, NeuralScoringState
from .penalty import CoveragePenaltyScorer, PenaltyState, StaticLengthPenaltyScorer

__all__ = [
    "CoveragePenaltyScorer",
    "NeuralModelScorer",
    "NeuralScoringState",
    "PenaltyState",
    "StaticLengthPenaltyScorer",
]
