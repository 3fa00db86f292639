"""Provide `CausalLanguageModel`, a decoder-only model backed by `AutoModelForCausalLM`."""

from __future__ import annotations

from typing import TYPE_CHECKING

from typing_extensions import override

import torch
from transformers import AutoModelForCausalLM, DynamicCache

from beam_ensemble.infer import DecoderState

from .base import TransformersModel, select_cache, suppress, to_log_probs

if TYPE_CHECKING:
    from collections.abc import Sequence

    from transformers import Cache

    from beam_ensemble.data import CorpusBatch
    from beam_ensemble.infer import ComputeContext

__all__ = ["CausalLanguageModel", "CausalLMState"]


class CausalLMState(DecoderState):
    """Decoder state of `CausalLanguageModel`, one row per hypothesis.

    Attributes:
        log_probs (torch.Tensor): Next token log-probabilities. Shape `[num_hyps, vocab_size]`.
        past_key_values (Cache): Attention cache of the target prefix.
        suppressed_token_ids (torch.Tensor): Ids removed from selection by `blacklist`.
    """

    log_probs: torch.Tensor
    past_key_values: Cache
    suppressed_token_ids: torch.Tensor

    def __init__(
        self, log_probs: torch.Tensor, past_key_values: Cache, suppressed_token_ids: torch.Tensor
    ) -> None:
        self.log_probs = log_probs
        self.past_key_values = past_key_values
        self.suppressed_token_ids = suppressed_token_ids

    @property
    @override
    def distribution(self) -> torch.Tensor:
        return self.log_probs

    @override
    def blacklist(self, total_costs: torch.Tensor, batch: CorpusBatch) -> None:
        suppress(total_costs, self.suppressed_token_ids)


class CausalLanguageModel(TransformersModel[CausalLMState]):
    """CausalLanguageModel wraps huggingface decoder-only models such as Qwen3.

    The inputs of the batch are not read, only its size. Every hypothesis starts from the
    BOS token of the model, or from the end-of-sequence token when the model has none.

    Refers to `TransformersModel` and the protocol `EncoderDecoder` for more details.
    """

    auto_model_class = AutoModelForCausalLM

    @property
    def bos_token_id(self) -> int:
        bos_token_id = self.model.config.bos_token_id
        if bos_token_id is None:
            return self.options.eos_token_id
        return bos_token_id

    @torch.no_grad()
    @override
    def start_state(self, context: ComputeContext, batch: CorpusBatch) -> CausalLMState:
        input_ids = torch.full(
            (batch.size, 1), self.bos_token_id, dtype=torch.long, device=context.device
        )
        return self._forward(context, input_ids, DynamicCache())

    @torch.no_grad()
    @override
    def step(
        self,
        context: ComputeContext,
        prior_state: CausalLMState,
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> CausalLMState:
        beam_idx = torch.as_tensor(hyp_indices, dtype=torch.long, device=context.device)
        input_ids = torch.as_tensor(emb_indices, dtype=torch.long, device=context.device).view(
            -1, 1
        )
        return self._forward(
            context, input_ids, select_cache(prior_state.past_key_values, beam_idx)
        )

    def _forward(
        self, context: ComputeContext, input_ids: torch.Tensor, past_key_values: Cache
    ) -> CausalLMState:
        forward_out = self.model(
            input_ids=input_ids,
            past_key_values=past_key_values,
            use_cache=True,
        )

        return CausalLMState(
            log_probs=to_log_probs(forward_out.logits),
            past_key_values=forward_out.past_key_values,
            suppressed_token_ids=self.suppressed_token_ids(context),
        )


EncoderDecoderImpl = CausalLanguageModel
