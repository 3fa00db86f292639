from __future__ import annotations

from typing import TYPE_CHECKING

from beam_ensemble.artifact import load_settings
from beam_ensemble.config.load import make_model_options
from beam_ensemble.config.registry import ModelType
from beam_ensemble.errors import AdvisoryMetadataMissingError
from beam_ensemble.utils import logger_or_dummy

if TYPE_CHECKING:
    from collections.abc import Callable
    from logging import Logger
    from typing import Any

    from beam_ensemble.config.external import UserEnsembleConfig
    from beam_ensemble.config.internal import ModelOptions
    from beam_ensemble.infer import ComputeContext, EncoderDecoder
    from beam_ensemble.score import Scorer, ScorerEnsemble

    ModelBuilder = Callable[[ModelOptions], EncoderDecoder[Any]]

WORD_PENALTY_NAME = "word-penalty"
UNSEEN_WORD_PENALTY_NAME = "unseen-word-penalty"


def make_context(user_config: UserEnsembleConfig) -> ComputeContext:
    import beam_ensemble.infer.impl.context as impl_module  # noqa: PLC0415

    context_class = impl_module.ContextImpl
    return context_class(device=user_config.device)


def make_encoder_decoder(options: ModelOptions) -> EncoderDecoder[Any]:
    match options.type:
        case ModelType.S2S:
            import beam_ensemble.infer.impl.hf.seq2seq as impl_module  # noqa: PLC0415
        case ModelType.LM:
            import beam_ensemble.infer.impl.hf.causal_lm as impl_module  # noqa: PLC0415

    encdec_class = impl_module.EncoderDecoderImpl
    return encdec_class(options=options)


def make_scorer_by_type(
    name: str,
    weight: float,
    model_path: str,
    options: ModelOptions,
    model_builder: ModelBuilder = make_encoder_decoder,
    logger: Logger | None = None,
) -> Scorer[Any]:
    import beam_ensemble.score.impl.neural as impl_module  # noqa: PLC0415

    logger = logger_or_dummy(logger)

    encdec = model_builder(options)
    logger.info("Loading scorer of type %s as feature %s", options.type, name)

    scorer_class = impl_module.NeuralModelScorer
    return scorer_class(encdec=encdec, name=name, weight=weight, model_path=model_path)


def make_scorers(
    user_config: UserEnsembleConfig,
    model_builder: ModelBuilder = make_encoder_decoder,
    logger: Logger | None = None,
) -> list[Scorer[Any]]:
    """Build one scorer per configured model, followed by the enabled penalty scorers.

    Model scorers are named `F0`, `F1`, ... by position. Settings embedded in each model
    artifact override the user configuration; artifacts without settings are accepted with
    a warning. A language model reads the input stream right after the configured inputs.

    Args:
        user_config (UserEnsembleConfig): User specified configuration.
        model_builder (ModelBuilder): Assembles the model of each scorer from its options.
        logger (Logger | None): Logger for progress messages.

    Returns:
        list[Scorer]: The scorers, model scorers first.

    Raises:
        ConfigurationError: If the options of a model are invalid.
        ArtifactLoadError: If a model artifact cannot be read.
    """
    logger = logger_or_dummy(logger)
    scorers: list[Scorer[Any]] = []

    for i, (model_path, weight) in enumerate(
        zip(user_config.models, user_config.model_weights, strict=True)
    ):
        name = f"F{i}"

        try:
            model_settings = load_settings(model_path)
        except AdvisoryMetadataMissingError:
            logger.warning("No model settings found in model file %s", model_path)
            model_settings = None

        options = make_model_options(user_config, model_settings)
        if options.type == ModelType.LM and user_config.inputs:
            options.index = len(user_config.inputs)

        scorers.append(
            make_scorer_by_type(name, weight, model_path, options, model_builder, logger)
        )

    scorers.extend(make_penalty_scorers(user_config))
    return scorers


def make_penalty_scorers(user_config: UserEnsembleConfig) -> list[Scorer[Any]]:
    import beam_ensemble.score.impl.penalty as impl_module  # noqa: PLC0415

    scorers: list[Scorer[Any]] = []

    if user_config.word_penalty != 0:
        scorers.append(
            impl_module.StaticLengthPenaltyScorer(
                name=WORD_PENALTY_NAME,
                weight=user_config.word_penalty,
                dim_vocab=user_config.dim_vocab,
                free_token_ids=(user_config.pad_token_id, user_config.eos_token_id),
            )
        )

    if user_config.unseen_word_penalty != 0:
        scorers.append(
            impl_module.CoveragePenaltyScorer(
                name=UNSEEN_WORD_PENALTY_NAME,
                weight=user_config.unseen_word_penalty,
                dim_vocab=user_config.dim_vocab,
                batch_index=0,
                eos_token_id=user_config.eos_token_id,
            )
        )

    return scorers


def make_ensemble(
    user_config: UserEnsembleConfig,
    model_builder: ModelBuilder = make_encoder_decoder,
    logger: Logger | None = None,
) -> ScorerEnsemble:
    from beam_ensemble.score import ScorerEnsemble  # noqa: PLC0415

    scorers = make_scorers(user_config, model_builder=model_builder, logger=logger)
    return ScorerEnsemble(scorers, logger=logger)
