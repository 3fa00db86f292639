"""User facing interface, defining external user specifiable configuration options."""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, Field, model_validator

from .registry import ModelType


def _all_positive(dim_vocabs: list[int]) -> list[int]:
    """Check that every vocabulary size is positive."""
    if any(dim <= 0 for dim in dim_vocabs):
        raise ValueError(f"Vocabulary sizes must be positive, got {dim_vocabs}.")
    return dim_vocabs


class UserEnsembleConfig(BaseModel):
    """User specifiable configuration for building a scorer ensemble.

    Attributes:
        models (list[str]): Paths of the model artifacts, one scorer per path.
        weights (list[float] | None): Combination weight of each model, in the order of `models`.
            Default to `1.0` for every model.
        dim_vocabs (list[int]): Vocabulary sizes, one per stream. The last entry is the
            target vocabulary size used by the penalty scorers.
        inputs (list[str]): Names of the configured input streams.
        type (ModelType): Model type used when an artifact does not embed its own.
            Default to `ModelType.S2S`.
        word_penalty (float): Weight of the word penalty scorer, disabled when `0`.
        unseen_word_penalty (float): Weight of the penalty on target words unseen in the input,
            disabled when `0`.
        pad_token_id (int): Id of the padding token. Default to `0`.
        eos_token_id (int): Id of the end-of-sequence token. Default to `2`.
        architecture (dict[str, Any] | None): `transformers` configuration arguments
            (including `model_type`) used when an artifact does not embed its own.
        device (str): Device the models run on. Default to `"cpu"`.
    """

    models: list[str] = Field(min_length=1)
    weights: list[float] | None = None
    dim_vocabs: Annotated[list[int], AfterValidator(_all_positive)] = Field(min_length=1)
    inputs: list[str] = Field(default_factory=list)
    type: ModelType = ModelType.S2S
    word_penalty: float = 0.0
    unseen_word_penalty: float = 0.0
    pad_token_id: int = Field(default=0, ge=0)
    eos_token_id: int = Field(default=2, ge=0)
    architecture: dict[str, Any] | None = None
    device: str = "cpu"

    @model_validator(mode="after")
    def _check_weights(self) -> UserEnsembleConfig:
        if self.weights is not None and len(self.weights) != len(self.models):
            raise ValueError(
                f"Got {len(self.weights)} weights for {len(self.models)} models, "
                "the two lists must have the same length."
            )
        return self

    @property
    def model_weights(self) -> list[float]:
        """Weight of each model, defaulting to uniform `1.0`."""
        if self.weights is None:
            return [1.0] * len(self.models)
        return list(self.weights)

    @property
    def dim_vocab(self) -> int:
        """Size of the target vocabulary, taken from the last configured entry."""
        return self.dim_vocabs[-1]

    @classmethod
    def from_toml(cls, toml_path: str) -> UserEnsembleConfig:
        """Load configuration from a TOML file.

        Args:
            toml_path (str): Path to the TOML configuration file.

        Returns:
            UserEnsembleConfig: Config instance populated with values from the TOML file.
        """
        with Path(toml_path).open("rb") as f:
            config_dict = tomllib.load(f)

        return cls(**config_dict)
