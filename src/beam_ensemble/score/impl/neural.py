"""Provide `NeuralModelScorer`, adapting an `EncoderDecoder` to the `Scorer` protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic

from typing_extensions import override

import torch

from beam_ensemble.errors import ComputationError
from beam_ensemble.infer import DecoderStateT
from beam_ensemble.score import ScoringState

from .base import BaseScorer

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from beam_ensemble.data import CorpusBatch
    from beam_ensemble.infer import ComputeContext, EncoderDecoder

__all__ = ["NeuralModelScorer", "NeuralScoringState"]


class NeuralScoringState(ScoringState, Generic[DecoderStateT]):
    """Wraps the decoder state of an `EncoderDecoder`.

    The distribution is a view owned by the wrapped decoder state, and `blacklist`
    is forwarded to it.

    Attributes:
        decoder_state (DecoderStateT): The wrapped decoder state.
    """

    decoder_state: DecoderStateT

    def __init__(self, decoder_state: DecoderStateT) -> None:
        self.decoder_state = decoder_state

    @property
    @override
    def distribution(self) -> torch.Tensor:
        return self.decoder_state.distribution

    @override
    def blacklist(self, total_costs: torch.Tensor, batch: CorpusBatch) -> None:
        self.decoder_state.blacklist(total_costs, batch)


class NeuralModelScorer(BaseScorer[NeuralScoringState[DecoderStateT]]):
    """Scores with a neural `EncoderDecoder`.

    Holds no computation logic itself. Every call first switches the compute context to
    the parameter namespace named after this scorer, then delegates to the model, so that
    several models can share one context.

    Attributes:
        encdec (EncoderDecoder[DecoderStateT]): The wrapped model.
        model_path (Path | str): Artifact the model parameters are loaded from.
    """

    encdec: EncoderDecoder[DecoderStateT]
    model_path: Path | str

    def __init__(
        self,
        encdec: EncoderDecoder[DecoderStateT],
        name: str,
        weight: float,
        model_path: Path | str,
    ) -> None:
        super().__init__(name, weight)
        self.encdec = encdec
        self.model_path = model_path

    @override
    def init(self, context: ComputeContext) -> None:
        context.switch_params(self.name)
        self.encdec.load(context, self.model_path)

    @override
    def clear(self, context: ComputeContext) -> None:
        context.switch_params(self.name)
        self.encdec.clear(context)

    @torch.no_grad()
    @override
    def start_state(
        self, context: ComputeContext, batch: CorpusBatch
    ) -> NeuralScoringState[DecoderStateT]:
        context.switch_params(self.name)
        decoder_state = self.encdec.start_state(context, batch)
        self._check_distribution(decoder_state.distribution, num_hyps=batch.size)
        return NeuralScoringState(decoder_state)

    @torch.no_grad()
    @override
    def step(
        self,
        context: ComputeContext,
        prior_state: NeuralScoringState[DecoderStateT],
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> NeuralScoringState[DecoderStateT]:
        if len(hyp_indices) != len(emb_indices):
            raise ValueError(
                f"hyp_indices and emb_indices must have the same length, "
                f"got {len(hyp_indices)} and {len(emb_indices)}."
            )

        context.switch_params(self.name)
        decoder_state = self.encdec.step(
            context, prior_state.decoder_state, hyp_indices, emb_indices
        )
        self._check_distribution(
            decoder_state.distribution,
            num_hyps=len(hyp_indices),
            vocab_size=prior_state.distribution.size(-1),
        )
        return NeuralScoringState(decoder_state)

    def _check_distribution(
        self, distribution: torch.Tensor, num_hyps: int, vocab_size: int | None = None
    ) -> None:
        """Reject distributions of the wrong shape, or containing NaN or `+inf`.

        `-inf` is allowed, models use it for tokens they rule out.

        Raises:
            ComputationError: If `distribution` is malformed.
        """
        if distribution.dim() != 2 or distribution.size(0) != num_hyps:
            raise ComputationError(
                f"Scorer {self.name} produced scores of shape {tuple(distribution.shape)}, "
                f"expected {num_hyps} hypotheses."
            )

        if vocab_size is not None and distribution.size(1) != vocab_size:
            raise ComputationError(
                f"Scorer {self.name} changed its vocabulary size "
                f"from {vocab_size} to {distribution.size(1)}."
            )

        if torch.isnan(distribution).any() or torch.isposinf(distribution).any():
            raise ComputationError(f"Scorer {self.name} produced non-finite scores.")
