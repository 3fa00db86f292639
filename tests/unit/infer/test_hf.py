from __future__ import annotations

import math
from typing import TYPE_CHECKING

import pytest
import torch

from beam_ensemble.artifact import load_parameters, save_artifact
from beam_ensemble.config.internal import ModelOptions
from beam_ensemble.config.registry import ModelType
from beam_ensemble.data import CorpusBatch
from beam_ensemble.errors import ArtifactLoadError, ConfigurationError
from beam_ensemble.infer.impl.hf import CausalLanguageModel, Seq2SeqModel
from beam_ensemble.score.impl.neural import NeuralModelScorer
from beam_ensemble.testing.infer.constants import (
    MARIAN_ARCHITECTURE,
    QWEN3_ARCHITECTURE,
    TINY_VOCAB_SIZE,
)
from beam_ensemble.testing.score import ScorerContractTests

if TYPE_CHECKING:
    from pathlib import Path

    from beam_ensemble.infer.impl.context import ParameterContext

ATOL = 1e-4

# Equal lengths, so that direct forward passes need no padding.
SOURCES = [[3, 5, 7], [4, 6, 8]]


def make_seq2seq(context: ParameterContext, path: Path) -> Seq2SeqModel:
    model = Seq2SeqModel(
        ModelOptions(
            type=ModelType.S2S,
            dim_vocabs=[TINY_VOCAB_SIZE, TINY_VOCAB_SIZE],
            architecture=MARIAN_ARCHITECTURE,
        )
    )
    model.load(context, path)
    return model


def make_causal_lm(context: ParameterContext, path: Path) -> CausalLanguageModel:
    model = CausalLanguageModel(
        ModelOptions(
            type=ModelType.LM,
            dim_vocabs=[TINY_VOCAB_SIZE],
            architecture=QWEN3_ARCHITECTURE,
        )
    )
    model.load(context, path)
    return model


class TestSeq2SeqScorer(ScorerContractTests):
    @pytest.fixture
    def scorer(self, context: ParameterContext, marian_artifact: Path) -> NeuralModelScorer:
        model = Seq2SeqModel(
            ModelOptions(dim_vocabs=[TINY_VOCAB_SIZE], architecture=MARIAN_ARCHITECTURE)
        )
        scorer = NeuralModelScorer(encdec=model, name="F0", weight=1.0, model_path=marian_artifact)
        scorer.init(context)
        return scorer

    def test_start_state(
        self, scorer: NeuralModelScorer, context: ParameterContext, batch: CorpusBatch
    ) -> None:
        self.start_state_test(scorer, context, batch, TINY_VOCAB_SIZE)

    def test_step(
        self, scorer: NeuralModelScorer, context: ParameterContext, batch: CorpusBatch
    ) -> None:
        self.step_test(scorer, context, batch, TINY_VOCAB_SIZE)

    def test_break_down(
        self, scorer: NeuralModelScorer, context: ParameterContext, batch: CorpusBatch
    ) -> None:
        self.break_down_test(scorer, context, batch)


class TestCausalLMScorer(ScorerContractTests):
    @pytest.fixture
    def scorer(self, context: ParameterContext, qwen3_artifact: Path) -> NeuralModelScorer:
        model = CausalLanguageModel(
            ModelOptions(
                type=ModelType.LM, dim_vocabs=[TINY_VOCAB_SIZE], architecture=QWEN3_ARCHITECTURE
            )
        )
        scorer = NeuralModelScorer(encdec=model, name="F1", weight=1.0, model_path=qwen3_artifact)
        scorer.init(context)
        return scorer

    def test_start_state(
        self, scorer: NeuralModelScorer, context: ParameterContext, batch: CorpusBatch
    ) -> None:
        self.start_state_test(scorer, context, batch, TINY_VOCAB_SIZE)

    def test_step(
        self, scorer: NeuralModelScorer, context: ParameterContext, batch: CorpusBatch
    ) -> None:
        self.step_test(scorer, context, batch, TINY_VOCAB_SIZE)

    def test_break_down(
        self, scorer: NeuralModelScorer, context: ParameterContext, batch: CorpusBatch
    ) -> None:
        self.break_down_test(scorer, context, batch)


def test_seq2seq_step_matches_full_forward(
    context: ParameterContext, marian_artifact: Path
) -> None:
    model = make_seq2seq(context, marian_artifact)
    batch = CorpusBatch.from_token_ids(SOURCES)
    start_token_id = MARIAN_ARCHITECTURE["decoder_start_token_id"]

    state = model.start_state(context, batch)
    state = model.step(context, state, hyp_indices=[1, 0, 1], emb_indices=[5, 9, 11])
    state = model.step(context, state, hyp_indices=[2, 0], emb_indices=[4, 6])

    # hypothesis 0 descends from sentence 1 via 11, hypothesis 1 from sentence 1 via 5
    expected_logits = model.model(
        input_ids=torch.tensor([SOURCES[1], SOURCES[1]]),
        attention_mask=torch.ones(2, 3, dtype=torch.long),
        decoder_input_ids=torch.tensor([[start_token_id, 11, 4], [start_token_id, 5, 6]]),
    ).logits
    expected = torch.log_softmax(expected_logits[:, -1], dim=-1)

    assert torch.allclose(state.distribution, expected, atol=ATOL)


def test_causal_lm_step_matches_full_forward(
    context: ParameterContext, qwen3_artifact: Path
) -> None:
    model = make_causal_lm(context, qwen3_artifact)
    batch = CorpusBatch.from_token_ids(SOURCES)
    bos_token_id = QWEN3_ARCHITECTURE["bos_token_id"]

    state = model.start_state(context, batch)
    state = model.step(context, state, hyp_indices=[0, 1, 1], emb_indices=[5, 9, 11])
    state = model.step(context, state, hyp_indices=[2, 0], emb_indices=[4, 6])

    expected_logits = model.model(
        input_ids=torch.tensor([[bos_token_id, 11, 4], [bos_token_id, 5, 6]]),
    ).logits
    expected = torch.log_softmax(expected_logits[:, -1], dim=-1)

    assert torch.allclose(state.distribution, expected, atol=ATOL)


def test_step_leaves_prior_state_untouched(
    context: ParameterContext, marian_artifact: Path
) -> None:
    model = make_seq2seq(context, marian_artifact)
    batch = CorpusBatch.from_token_ids(SOURCES)

    prior_state = model.start_state(context, batch)
    prior_distribution = prior_state.distribution.clone()
    prior_length = prior_state.past_key_values.get_seq_length()

    model.step(context, prior_state, hyp_indices=[1, 1, 0], emb_indices=[3, 4, 5])

    assert prior_state.past_key_values.get_seq_length() == prior_length
    assert torch.equal(prior_state.distribution, prior_distribution)

    # the prior state can still be stepped along a different path
    next_state = model.step(context, prior_state, hyp_indices=[0], emb_indices=[7])
    assert next_state.distribution.shape == (1, TINY_VOCAB_SIZE)


def test_distribution_is_log_probabilities(
    context: ParameterContext, qwen3_artifact: Path
) -> None:
    model = make_causal_lm(context, qwen3_artifact)
    state = model.start_state(context, CorpusBatch.from_token_ids(SOURCES))

    total = torch.logsumexp(state.distribution, dim=-1)

    assert torch.allclose(total, torch.zeros_like(total), atol=ATOL)


def test_blacklist_suppresses_padding(context: ParameterContext, marian_artifact: Path) -> None:
    model = make_seq2seq(context, marian_artifact)
    batch = CorpusBatch.from_token_ids(SOURCES)
    state = model.start_state(context, batch)
    total_costs = state.distribution.clone()

    state.blacklist(total_costs, batch)

    pad_token_id = model.options.pad_token_id
    assert torch.isneginf(total_costs[:, pad_token_id]).all()
    assert torch.isfinite(total_costs[:, pad_token_id + 1 :]).all()


def test_blacklist_keeps_padding_doubling_as_eos(
    context: ParameterContext, qwen3_artifact: Path
) -> None:
    model = CausalLanguageModel(
        ModelOptions(
            type=ModelType.LM,
            dim_vocabs=[TINY_VOCAB_SIZE],
            pad_token_id=2,
            eos_token_id=2,
            architecture=QWEN3_ARCHITECTURE,
        )
    )
    model.load(context, qwen3_artifact)
    batch = CorpusBatch.from_token_ids(SOURCES)
    state = model.start_state(context, batch)
    total_costs = state.distribution.clone()

    state.blacklist(total_costs, batch)

    assert torch.equal(total_costs, state.distribution)


def test_clear_drops_scratch(context: ParameterContext, marian_artifact: Path) -> None:
    model = make_seq2seq(context, marian_artifact)
    model.start_state(context, CorpusBatch.from_token_ids(SOURCES))
    assert context.scratch

    model.clear(context)

    assert not context.scratch
    assert context.params


def test_load_registers_parameters(context: ParameterContext, marian_artifact: Path) -> None:
    context.switch_params("F0")
    model = make_seq2seq(context, marian_artifact)

    assert set(context.params) == set(model.model.state_dict())

    context.switch_params("F1")
    assert not context.params


def test_registered_parameters_are_model_weights(
    context: ParameterContext, marian_artifact: Path
) -> None:
    model = make_seq2seq(context, marian_artifact)
    batch = CorpusBatch.from_token_ids(SOURCES)
    weights = dict(model.model.named_parameters())

    for name, tensor in context.params.items():
        if name in weights:
            assert tensor.data_ptr() == weights[name].data_ptr()

    before = model.start_state(context, batch).distribution
    with torch.no_grad():
        context.params["lm_head.weight"].zero_()
    after = model.start_state(context, batch).distribution

    assert not torch.allclose(before, after)
    assert torch.allclose(after, torch.full_like(after, -math.log(TINY_VOCAB_SIZE)))


def test_load_rejects_missing_parameter(
    context: ParameterContext, marian_artifact: Path, tmp_path: Path
) -> None:
    parameters = load_parameters(marian_artifact)
    parameters.pop(next(iter(parameters)))
    path = tmp_path / "incomplete.pt"
    save_artifact(path, parameters)

    with pytest.raises(ArtifactLoadError, match="do not match"):
        make_seq2seq(context, path)


def test_load_requires_architecture(context: ParameterContext, marian_artifact: Path) -> None:
    model = Seq2SeqModel(ModelOptions(dim_vocabs=[TINY_VOCAB_SIZE]))

    with pytest.raises(ConfigurationError, match="No architecture"):
        model.load(context, marian_artifact)


def test_load_rejects_unknown_model_type(
    context: ParameterContext, marian_artifact: Path
) -> None:
    model = Seq2SeqModel(
        ModelOptions(dim_vocabs=[TINY_VOCAB_SIZE], architecture={"model_type": "no-such-model"})
    )

    with pytest.raises(ConfigurationError, match="Invalid architecture"):
        model.load(context, marian_artifact)


def test_model_used_before_load() -> None:
    model = Seq2SeqModel(
        ModelOptions(dim_vocabs=[TINY_VOCAB_SIZE], architecture=MARIAN_ARCHITECTURE)
    )

    with pytest.raises(RuntimeError, match="before its parameters are loaded"):
        _ = model.model
