"""Define `EncoderDecoder` and `DecoderState`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    import torch

    from beam_ensemble.data import CorpusBatch

    from .context import ComputeContext

__all__ = ["DecoderState", "DecoderStateT", "EncoderDecoder"]


class DecoderState(Protocol):
    """Recurrent state of an `EncoderDecoder` after scoring one decoding position.

    A decoder state is never modified once created. `EncoderDecoder.step` returns a new one.
    """

    @property
    def distribution(self) -> torch.Tensor:
        """Log-probabilities of the next token for every hypothesis.

        Shape `[num_hyps, vocab_size]`.
        """
        ...

    def blacklist(self, total_costs: torch.Tensor, batch: CorpusBatch) -> None:
        """Suppress vocabulary ids that must not be selected, by editing `total_costs` in place.

        Args:
            total_costs (torch.Tensor): Accumulated beam costs. Shape `[num_hyps, vocab_size]`.
            batch (CorpusBatch): The batch being decoded.
        """
        ...


DecoderStateT = TypeVar("DecoderStateT", bound=DecoderState)


class EncoderDecoder(Protocol[DecoderStateT]):
    """EncoderDecoder is a neural sequence model able to score the next token of many hypotheses.

    It owns its architecture and its parameter format. Its parameters live in the current
    namespace of the `ComputeContext` passed to each call.
    """

    def load(self, context: ComputeContext, path: str | Path) -> None:
        """Load the model parameters from the artifact at `path` into the current namespace.

        Raises:
            ArtifactLoadError: If the artifact is missing, corrupt, or lacks required parameters.
        """
        ...

    def clear(self, context: ComputeContext) -> None:
        """Drop mutable scratch the model keeps in the current namespace."""
        ...

    def start_state(self, context: ComputeContext, batch: CorpusBatch) -> DecoderStateT:
        """Encode `batch` and score the first target position.

        The returned state holds one hypothesis per sentence of `batch`.
        """
        ...

    def step(
        self,
        context: ComputeContext,
        prior_state: DecoderStateT,
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> DecoderStateT:
        """Extend hypotheses of `prior_state` by one token and score the next position.

        Candidate `k` of the returned state extends hypothesis `hyp_indices[k]` of
        `prior_state` with the token `emb_indices[k]`. Hypotheses may be repeated,
        reordered or dropped. `prior_state` is left untouched.

        Args:
            context (ComputeContext): Shared compute context.
            prior_state (DecoderStateT): State of the previous position.
            hyp_indices (Sequence[int]): Hypothesis of `prior_state` extended by each candidate.
            emb_indices (Sequence[int]): Token fed as input for each candidate.

        Returns:
            DecoderStateT: State holding `len(hyp_indices)` hypotheses.
        """
        ...
