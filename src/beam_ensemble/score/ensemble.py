"""Provide `ScorerEnsemble`, stepping a weighted collection of scorers together."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import torch

from beam_ensemble.errors import ComputationError
from beam_ensemble.utils import Timer, logger_or_dummy

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from logging import Logger

    from beam_ensemble.data import CorpusBatch
    from beam_ensemble.infer import ComputeContext

    from .interfaces import Scorer, ScoringState

__all__ = ["ScorerEnsemble"]


class ScorerEnsemble:
    """A weighted collection of scorers, driven in lockstep by a beam search.

    `step` advances every scorer before returning, so a driver never sees a mix of states
    from different positions. Scorers do not depend on each other within a step.

    States are passed around as lists aligned with `scorers`.

    Attributes:
        scorers (tuple[Scorer, ...]): The scorers, in combination order.
        logger (Logger): Logger for progress messages.
    """

    scorers: tuple[Scorer[Any], ...]
    logger: Logger

    def __init__(self, scorers: Sequence[Scorer[Any]], logger: Logger | None = None) -> None:
        if not scorers:
            raise ValueError("ScorerEnsemble needs at least one scorer.")

        names = [scorer.name for scorer in scorers]
        if len(set(names)) != len(names):
            raise ValueError(f"Scorer names must be unique, got {names}.")

        self.scorers = tuple(scorers)
        self.logger = logger_or_dummy(logger)

    def __len__(self) -> int:
        return len(self.scorers)

    def __iter__(self) -> Iterator[Scorer[Any]]:
        return iter(self.scorers)

    @property
    def weights(self) -> tuple[float, ...]:
        return tuple(scorer.weight for scorer in self.scorers)

    def init(self, context: ComputeContext) -> None:
        for scorer in self.scorers:
            scorer.init(context)

    def clear(self, context: ComputeContext) -> None:
        for scorer in self.scorers:
            scorer.clear(context)

    def start_states(self, context: ComputeContext, batch: CorpusBatch) -> list[ScoringState]:
        """Create the initial state of every scorer for `batch`."""
        return [scorer.start_state(context, batch) for scorer in self.scorers]

    def step(
        self,
        context: ComputeContext,
        states: Sequence[ScoringState],
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> list[ScoringState]:
        """Advance every scorer by one decoding position.

        Refers to `Scorer.step` for the meaning of `hyp_indices` and `emb_indices`.

        Raises:
            ValueError: If `states` does not match the scorers, or the index lists differ in length.
        """
        self._check_states(states)
        if len(hyp_indices) != len(emb_indices):
            raise ValueError(
                f"hyp_indices and emb_indices must have the same length, "
                f"got {len(hyp_indices)} and {len(emb_indices)}."
            )

        next_states = []
        for scorer, state in zip(self.scorers, states, strict=True):
            with Timer(scorer.name) as timer:
                next_states.append(scorer.step(context, state, hyp_indices, emb_indices))
            self.logger.debug(
                "Scorer %s stepped %d hypotheses in %.3f ms",
                timer.name,
                len(hyp_indices),
                timer.elapsed_ms,
            )

        return next_states

    def combine(self, states: Sequence[ScoringState]) -> torch.Tensor:
        """Combine the scores of all scorers as `sum(weight * distribution)`.

        Scores shared by all hypotheses (a single row) are broadcast over the beam.

        Returns:
            torch.Tensor: Combined scores. Shape `[num_hyps, vocab_size]`.

        Raises:
            ValueError: If `states` does not match the scorers.
            ComputationError: If the distributions cannot be broadcast together,
                or the combined scores contain NaN.
        """
        self._check_states(states)

        combined: torch.Tensor | None = None
        for scorer, state in zip(self.scorers, states, strict=True):
            weighted = scorer.weight * state.distribution
            try:
                combined = weighted if combined is None else combined + weighted
            except RuntimeError as e:
                raise ComputationError(
                    f"Scores of {scorer.name} of shape {tuple(weighted.shape)} "
                    f"cannot be combined with shape {tuple(combined.shape)}."
                ) from e

        assert combined is not None
        if torch.isnan(combined).any():
            raise ComputationError("Combined scores contain NaN.")

        return combined

    def blacklist(
        self, total_costs: torch.Tensor, states: Sequence[ScoringState], batch: CorpusBatch
    ) -> None:
        """Let every state suppress vocabulary ids in `total_costs`, in place."""
        self._check_states(states)
        for state in states:
            state.blacklist(total_costs, batch)

    def break_down(self, states: Sequence[ScoringState], index: int) -> dict[str, float]:
        """Return the weighted contribution of every scorer to one entry of the combined scores.

        Args:
            states (Sequence[ScoringState]): States aligned with `scorers`.
            index (int): Flat index into the `[num_hyps * vocab_size]` score grid.

        Returns:
            dict[str, float]: Weighted score of each scorer, keyed by scorer name.
        """
        self._check_states(states)
        return {
            scorer.name: scorer.weight * state.break_down(index)
            for scorer, state in zip(self.scorers, states, strict=True)
        }

    def _check_states(self, states: Sequence[ScoringState]) -> None:
        if len(states) != len(self.scorers):
            raise ValueError(f"Expected {len(self.scorers)} states, got {len(states)}.")
