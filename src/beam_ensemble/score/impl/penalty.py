"""Provide heuristic penalty scorers: `StaticLengthPenaltyScorer` and `CoveragePenaltyScorer`.

Both produce one row of scores over the vocabulary, shared by every hypothesis and
every decoding position. Their `step` returns the prior state unchanged, which also means
they cannot express penalties depending on the position.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from typing_extensions import override

from beam_ensemble.score import ScoringState

from .base import BaseScorer

if TYPE_CHECKING:
    from collections.abc import Sequence

    import torch

    from beam_ensemble.data import CorpusBatch
    from beam_ensemble.infer import ComputeContext

__all__ = ["CoveragePenaltyScorer", "PenaltyState", "StaticLengthPenaltyScorer"]

PAD_TOKEN_ID = 0
EOS_TOKEN_ID = 2


class PenaltyState(ScoringState):
    """Immutable row of penalties over the vocabulary.

    The row stands for every hypothesis at once, so flat indices passed to `break_down`
    are taken modulo `dim_vocab`.

    Attributes:
        dim_vocab (int): Size of the vocabulary.
    """

    dim_vocab: int
    _penalties: torch.Tensor

    def __init__(self, dim_vocab: int, penalties: torch.Tensor) -> None:
        self.dim_vocab = dim_vocab
        self._penalties = penalties

    @property
    @override
    def distribution(self) -> torch.Tensor:
        return self._penalties

    @override
    def break_down(self, index: int) -> float:
        return self._penalties[0, index % self.dim_vocab].item()


class StaticLengthPenaltyScorer(BaseScorer[PenaltyState]):
    """Adds a constant score to every token except a few free ones.

    With a positive weight this rewards longer outputs, since the end-of-sequence token
    is free while any other token earns `penalty`.

    Attributes:
        dim_vocab (int): Size of the target vocabulary.
        penalty (float): Score of every non-free token.
        free_token_ids (tuple[int, ...]): Tokens scored `0`, padding and end-of-sequence by default.
    """

    dim_vocab: int
    penalty: float
    free_token_ids: tuple[int, ...]

    def __init__(
        self,
        name: str,
        weight: float,
        dim_vocab: int,
        penalty: float = 1.0,
        free_token_ids: Sequence[int] = (PAD_TOKEN_ID, EOS_TOKEN_ID),
    ) -> None:
        super().__init__(name, weight)
        _check_token_ids(free_token_ids, dim_vocab)
        self.dim_vocab = dim_vocab
        self.penalty = penalty
        self.free_token_ids = tuple(free_token_ids)

    @override
    def clear(self, context: ComputeContext) -> None:
        return

    @override
    def start_state(self, context: ComputeContext, batch: CorpusBatch) -> PenaltyState:
        penalties = [self.penalty] * self.dim_vocab
        for token_id in self.free_token_ids:
            penalties[token_id] = 0.0

        return PenaltyState(self.dim_vocab, context.constant(penalties))

    @override
    def step(
        self,
        context: ComputeContext,
        prior_state: PenaltyState,
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> PenaltyState:
        return prior_state


class CoveragePenaltyScorer(BaseScorer[PenaltyState]):
    """Penalizes target tokens that do not appear in an input stream of the batch.

    Tokens observed in input stream `batch_index`, plus the end-of-sequence token, score `0`.
    Every other token scores `penalty`. The row is rebuilt for every batch.

    Attributes:
        dim_vocab (int): Size of the target vocabulary.
        batch_index (int): Input stream whose tokens are exempt.
        penalty (float): Score of every unseen token.
        eos_token_id (int): Id of the end-of-sequence token, always exempt.
    """

    dim_vocab: int
    batch_index: int
    penalty: float
    eos_token_id: int

    def __init__(
        self,
        name: str,
        weight: float,
        dim_vocab: int,
        batch_index: int = 0,
        penalty: float = -1.0,
        eos_token_id: int = EOS_TOKEN_ID,
    ) -> None:
        super().__init__(name, weight)
        _check_token_ids((eos_token_id,), dim_vocab)
        self.dim_vocab = dim_vocab
        self.batch_index = batch_index
        self.penalty = penalty
        self.eos_token_id = eos_token_id

    @override
    def clear(self, context: ComputeContext) -> None:
        return

    @override
    def start_state(self, context: ComputeContext, batch: CorpusBatch) -> PenaltyState:
        seen_ids = batch[self.batch_index].vocab_ids()
        _check_token_ids(seen_ids, self.dim_vocab)

        penalties = [self.penalty] * self.dim_vocab
        for token_id in seen_ids:
            penalties[token_id] = 0.0
        penalties[self.eos_token_id] = 0.0

        return PenaltyState(self.dim_vocab, context.constant(penalties))

    @override
    def step(
        self,
        context: ComputeContext,
        prior_state: PenaltyState,
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> PenaltyState:
        return prior_state


def _check_token_ids(token_ids: Sequence[int] | set[int], dim_vocab: int) -> None:
    if dim_vocab <= 0:
        raise ValueError(f"dim_vocab must be positive, got {dim_vocab}.")

    out_of_range = sorted(token_id for token_id in token_ids if not 0 <= token_id < dim_vocab)
    if out_of_range:
        raise ValueError(f"Token ids {out_of_range} out of range for vocabulary of size {dim_vocab}.")
