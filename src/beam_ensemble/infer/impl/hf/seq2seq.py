"""Provide `Seq2SeqModel`, an encoder-decoder backed by `AutoModelForSeq2SeqLM`."""

from __future__ import annotations

from typing import TYPE_CHECKING

from typing_extensions import override

import torch
from transformers import AutoModelForSeq2SeqLM, DynamicCache, EncoderDecoderCache
from transformers.modeling_outputs import BaseModelOutput

from beam_ensemble.infer import DecoderState

from .base import TransformersModel, select_cache, suppress, to_log_probs

if TYPE_CHECKING:
    from collections.abc import Sequence

    from transformers import Cache

    from beam_ensemble.data import CorpusBatch
    from beam_ensemble.infer import ComputeContext

__all__ = ["Seq2SeqModel", "Seq2SeqState"]


class Seq2SeqState(DecoderState):
    """Decoder state of `Seq2SeqModel`, one row per hypothesis.

    Attributes:
        log_probs (torch.Tensor): Next token log-probabilities. Shape `[num_hyps, vocab_size]`.
        encoder_hidden_states (torch.Tensor): Encoded source of each hypothesis.
            Shape `[num_hyps, source_length, hidden_size]`.
        encoder_attention_mask (torch.Tensor): Source padding mask of each hypothesis.
            Shape `[num_hyps, source_length]`.
        past_key_values (Cache): Self and cross attention cache of the decoder.
        suppressed_token_ids (torch.Tensor): Ids removed from selection by `blacklist`.
    """

    log_probs: torch.Tensor
    encoder_hidden_states: torch.Tensor
    encoder_attention_mask: torch.Tensor
    past_key_values: Cache
    suppressed_token_ids: torch.Tensor

    def __init__(
        self,
        log_probs: torch.Tensor,
        encoder_hidden_states: torch.Tensor,
        encoder_attention_mask: torch.Tensor,
        past_key_values: Cache,
        suppressed_token_ids: torch.Tensor,
    ) -> None:
        self.log_probs = log_probs
        self.encoder_hidden_states = encoder_hidden_states
        self.encoder_attention_mask = encoder_attention_mask
        self.past_key_values = past_key_values
        self.suppressed_token_ids = suppressed_token_ids

    @property
    @override
    def distribution(self) -> torch.Tensor:
        return self.log_probs

    @override
    def blacklist(self, total_costs: torch.Tensor, batch: CorpusBatch) -> None:
        suppress(total_costs, self.suppressed_token_ids)


class Seq2SeqModel(TransformersModel[Seq2SeqState]):
    """Seq2SeqModel wraps huggingface encoder-decoder models such as Marian.

    The source is read from input stream `options.index` (the first one by default).

    Refers to `TransformersModel` and the protocol `EncoderDecoder` for more details.
    """

    auto_model_class = AutoModelForSeq2SeqLM

    @torch.no_grad()
    @override
    def start_state(self, context: ComputeContext, batch: CorpusBatch) -> Seq2SeqState:
        source = batch[self.options.index or 0]
        input_ids = source.token_ids.to(context.device)
        attention_mask = source.mask.to(context.device)

        encoder_out = self.model.get_encoder()(input_ids=input_ids, attention_mask=attention_mask)

        start_token_id = self.model.config.decoder_start_token_id
        if start_token_id is None:
            start_token_id = self.options.pad_token_id
        decoder_input_ids = torch.full(
            (batch.size, 1), start_token_id, dtype=torch.long, device=context.device
        )

        return self._forward(
            context,
            encoder_hidden_states=encoder_out.last_hidden_state,
            encoder_attention_mask=attention_mask,
            decoder_input_ids=decoder_input_ids,
            past_key_values=EncoderDecoderCache(DynamicCache(), DynamicCache()),
        )

    @torch.no_grad()
    @override
    def step(
        self,
        context: ComputeContext,
        prior_state: Seq2SeqState,
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> Seq2SeqState:
        beam_idx = torch.as_tensor(hyp_indices, dtype=torch.long, device=context.device)
        decoder_input_ids = torch.as_tensor(
            emb_indices, dtype=torch.long, device=context.device
        ).view(-1, 1)

        return self._forward(
            context,
            encoder_hidden_states=prior_state.encoder_hidden_states.index_select(0, beam_idx),
            encoder_attention_mask=prior_state.encoder_attention_mask.index_select(0, beam_idx),
            decoder_input_ids=decoder_input_ids,
            past_key_values=select_cache(prior_state.past_key_values, beam_idx),
        )

    def _forward(
        self,
        context: ComputeContext,
        encoder_hidden_states: torch.Tensor,
        encoder_attention_mask: torch.Tensor,
        decoder_input_ids: torch.Tensor,
        past_key_values: Cache,
    ) -> Seq2SeqState:
        forward_out = self.model(
            encoder_outputs=BaseModelOutput(last_hidden_state=encoder_hidden_states),
            attention_mask=encoder_attention_mask,
            decoder_input_ids=decoder_input_ids,
            past_key_values=past_key_values,
            use_cache=True,
        )

        return Seq2SeqState(
            log_probs=to_log_probs(forward_out.logits),
            encoder_hidden_states=encoder_hidden_states,
            encoder_attention_mask=encoder_attention_mask,
            past_key_values=forward_out.past_key_values,
            suppressed_token_ids=self.suppressed_token_ids(context),
        )


EncoderDecoderImpl = Seq2SeqModel
