from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Sequence

    import torch

    from beam_ensemble.data import CorpusBatch
    from beam_ensemble.infer import ComputeContext


class ScoringState(Protocol):
    """State of one scorer after scoring one decoding position.

    A scoring state carries the scorer's scores over the vocabulary for every hypothesis
    of the beam. It is created by `Scorer.start_state`, replaced by every `Scorer.step`,
    and never modified in place.
    """

    @property
    def distribution(self) -> torch.Tensor:
        """Scores over the vocabulary for the current position.

        Shape `[num_hyps, vocab_size]`, or `[1, vocab_size]` for scores shared by all hypotheses.
        Readers must not modify the returned tensor.
        """
        ...

    def break_down(self, index: int) -> float:
        """Return the score of a single entry, used to explain or rescore n-best lists.

        Args:
            index (int): Flat index into the `[num_hyps * vocab_size]` score grid,
                i.e. `hyp * vocab_size + token_id`.

        Returns:
            float: The score at `index`.
        """
        return self.distribution.flatten()[index].item()

    def blacklist(self, total_costs: torch.Tensor, batch: CorpusBatch) -> None:
        """Suppress vocabulary ids in `total_costs` before hypotheses are selected.

        Edits `total_costs` in place. Does nothing by default.

        Args:
            total_costs (torch.Tensor): Accumulated beam costs. Shape `[num_hyps, vocab_size]`.
            batch (CorpusBatch): The batch being decoded.
        """
        return


ScoringStateT = TypeVar("ScoringStateT", bound=ScoringState)


class Scorer(Protocol[ScoringStateT]):
    """Scorer contributes weighted scores over the vocabulary to a beam search.

    A scorer may be a neural model or a hand written heuristic. Every scorer keeps its own
    state, threaded through the decoding steps by the beam search driver. The driver combines
    the scores of all scorers as `sum(weight * score)` per candidate.

    Lifecycle: `init` once per run to load parameters, then per batch `start_state` followed
    by one `step` per decoding position. `clear` resets scratch kept in the compute context
    before the context is reused.
    """

    @property
    def name(self) -> str:
        """Unique name of the scorer, also the key of its parameter namespace."""
        ...

    @property
    def weight(self) -> float:
        """Coefficient applied to every score of this scorer when combining."""
        ...

    def init(self, context: ComputeContext) -> None:
        """Load parameters into `context`. Does nothing by default.

        Raises:
            ArtifactLoadError: If the scorer's model artifact is missing or malformed.
        """
        return

    def clear(self, context: ComputeContext) -> None:
        """Drop scratch the scorer keeps in `context`."""
        ...

    def start_state(self, context: ComputeContext, batch: CorpusBatch) -> ScoringStateT:
        """Create the initial state for `batch`, holding one hypothesis per sentence."""
        ...

    def step(
        self,
        context: ComputeContext,
        prior_state: ScoringStateT,
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> ScoringStateT:
        """Advance `prior_state` by one decoding position.

        Candidate `k` extends hypothesis `hyp_indices[k]` of `prior_state` with the token
        `emb_indices[k]`. Hypotheses may be repeated, reordered or dropped, which is how
        the beam is pruned and expanded.

        Args:
            context (ComputeContext): Shared compute context.
            prior_state (ScoringStateT): State of the previous position.
            hyp_indices (Sequence[int]): Hypothesis extended by each candidate.
            emb_indices (Sequence[int]): Token fed as input for each candidate.
                Same length as `hyp_indices`.

        Returns:
            ScoringStateT: The state of the next position.

        Raises:
            ValueError: If `hyp_indices` and `emb_indices` differ in length.
            ComputationError: If the new scores are malformed or contain NaN.
        """
        ...
