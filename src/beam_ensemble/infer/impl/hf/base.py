"""Provide `TransformersModel`, the shared base of the `transformers` backed models."""

from __future__ import annotations

import copy
from abc import abstractmethod
from typing import TYPE_CHECKING, ClassVar

from typing_extensions import override

import torch
from transformers import AutoConfig

from beam_ensemble.artifact import load_parameters
from beam_ensemble.errors import ArtifactLoadError, ConfigurationError
from beam_ensemble.infer import DecoderStateT, EncoderDecoder

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from transformers import Cache, PreTrainedModel

    from beam_ensemble.config.internal import ModelOptions
    from beam_ensemble.data import CorpusBatch
    from beam_ensemble.infer import ComputeContext

__all__ = ["TransformersModel"]

SUPPRESSED_IDS_KEY = "suppressed_token_ids"


class TransformersModel(EncoderDecoder[DecoderStateT]):
    """TransformersModel implements `load` and `clear` of the `EncoderDecoder` protocol.

    The model architecture is built from `options.architecture` with `AutoConfig`, then
    the parameters read from the artifact are loaded strictly into it. The loaded tensors
    are registered in the current namespace of the compute context. The registered tensors
    share storage with the model, so the namespace holds the live weights the forward pass
    reads rather than a copy.

    Inheriting classes set `auto_model_class` and implement `start_state` and `step`.

    Attributes:
        options (ModelOptions): Options the model is assembled with.
        hf_model (PreTrainedModel | None): The underlying huggingface model, `None` until loaded.
    """

    auto_model_class: ClassVar[type]

    options: ModelOptions
    hf_model: PreTrainedModel | None

    def __init__(self, options: ModelOptions) -> None:
        self.options = options
        self.hf_model = None

    @override
    def load(self, context: ComputeContext, path: str | Path) -> None:
        if self.options.architecture is None:
            raise ConfigurationError(
                f"No architecture configured for model file {path}, "
                "neither embedded in the artifact nor given in the configuration."
            )

        parameters = load_parameters(path)

        try:
            hf_config = AutoConfig.for_model(**self.options.architecture)
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid architecture for model file {path}: {e}") from e

        hf_model = self.auto_model_class.from_config(hf_config)
        try:
            hf_model.load_state_dict(parameters, strict=True)
        except RuntimeError as e:
            raise ArtifactLoadError(
                f"Parameters in model file {path} do not match the architecture: {e}"
            ) from e

        hf_model.to(device=context.device, dtype=context.dtype)
        hf_model.eval()

        context.params.clear()
        context.params.update(hf_model.state_dict())
        self.hf_model = hf_model

    @override
    def clear(self, context: ComputeContext) -> None:
        context.clear_scratch()

    @abstractmethod
    def start_state(self, context: ComputeContext, batch: CorpusBatch) -> DecoderStateT: ...

    @abstractmethod
    def step(
        self,
        context: ComputeContext,
        prior_state: DecoderStateT,
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> DecoderStateT: ...

    @property
    def model(self) -> PreTrainedModel:
        """The loaded huggingface model.

        Raises:
            RuntimeError: If `load` has not been called yet.
        """
        if self.hf_model is None:
            raise RuntimeError(f"{type(self).__name__} is used before its parameters are loaded.")
        return self.hf_model

    def suppressed_token_ids(self, context: ComputeContext) -> torch.Tensor:
        """Ids never to be selected during decoding, cached in the scratch of the namespace.

        The padding token is suppressed unless it doubles as the end-of-sequence token.
        """
        if SUPPRESSED_IDS_KEY not in context.scratch:
            ids = []
            if self.options.pad_token_id != self.options.eos_token_id:
                ids.append(self.options.pad_token_id)
            context.scratch[SUPPRESSED_IDS_KEY] = torch.tensor(
                ids, dtype=torch.long, device=context.device
            )
        return context.scratch[SUPPRESSED_IDS_KEY]


def to_log_probs(logits: torch.Tensor) -> torch.Tensor:
    """Normalize the logits of the last position into log-probabilities.

    Args:
        logits (torch.Tensor): Shape `[num_hyps, num_tokens, vocab_size]`.

    Returns:
        torch.Tensor: Shape `[num_hyps, vocab_size]`.
    """
    return torch.log_softmax(logits[:, -1].float(), dim=-1)


def select_cache(cache: Cache, beam_idx: torch.Tensor) -> Cache:
    """Return a copy of `cache` holding the hypotheses at `beam_idx`, in that order.

    `cache` itself is left untouched, since prior states may still be referenced.
    """
    selected = copy.deepcopy(cache)
    selected.reorder_cache(beam_idx)
    return selected


def suppress(total_costs: torch.Tensor, token_ids: torch.Tensor) -> None:
    """Set the costs of `token_ids` to `-inf` for every hypothesis, in place."""
    if token_ids.numel() > 0:
        total_costs[:, token_ids.to(total_costs.device)] = float("-inf")
