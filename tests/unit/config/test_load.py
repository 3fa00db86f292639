from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from beam_ensemble.config.external import UserEnsembleConfig
from beam_ensemble.config.load import load_config, make_model_options
from beam_ensemble.config.registry import ModelType
from beam_ensemble.errors import ConfigurationError

if TYPE_CHECKING:
    from pathlib import Path

CONFIG_TOML = """
models = ["a.pt", "b.pt"]
weights = [0.3, 0.7]
dim_vocabs = [100, 120]
inputs = ["source"]
word_penalty = 0.5

[architecture]
model_type = "marian"
d_model = 8
"""


def write_config(tmp_path: Path, content: str) -> str:
    path = tmp_path / "config.toml"
    path.write_text(content)
    return str(path)


def test_load_config(tmp_path: Path) -> None:
    config = load_config(write_config(tmp_path, CONFIG_TOML))

    assert config.models == ["a.pt", "b.pt"]
    assert config.model_weights == [0.3, 0.7]
    assert config.dim_vocab == 120
    assert config.inputs == ["source"]
    assert config.type == ModelType.S2S
    assert config.word_penalty == 0.5
    assert config.unseen_word_penalty == 0.0
    assert config.architecture == {"model_type": "marian", "d_model": 8}


def test_weights_default_to_one() -> None:
    config = UserEnsembleConfig(models=["a.pt", "b.pt", "c.pt"], dim_vocabs=[10])

    assert config.model_weights == [1.0, 1.0, 1.0]


def test_weights_must_match_models(tmp_path: Path) -> None:
    path = write_config(
        tmp_path, 'models = ["a.pt", "b.pt"]\nweights = [1.0]\ndim_vocabs = [10]\n'
    )

    with pytest.raises(ConfigurationError, match="same length"):
        load_config(path)


def test_vocabulary_sizes_must_be_positive(tmp_path: Path) -> None:
    path = write_config(tmp_path, 'models = ["a.pt"]\ndim_vocabs = [10, 0]\n')

    with pytest.raises(ConfigurationError, match="must be positive"):
        load_config(path)


def test_models_are_required(tmp_path: Path) -> None:
    path = write_config(tmp_path, "dim_vocabs = [10]\n")

    with pytest.raises(ConfigurationError):
        load_config(path)


def test_unknown_model_type(tmp_path: Path) -> None:
    path = write_config(tmp_path, 'models = ["a.pt"]\ndim_vocabs = [10]\ntype = "rnn"\n')

    with pytest.raises(ConfigurationError):
        load_config(path)


def test_invalid_toml(tmp_path: Path) -> None:
    path = write_config(tmp_path, "models = [\n")

    with pytest.raises(ConfigurationError, match="Invalid config file"):
        load_config(path)


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="does not exist"):
        load_config(str(tmp_path / "missing.toml"))


def test_model_options_follow_user_config() -> None:
    config = UserEnsembleConfig(
        models=["a.pt"],
        dim_vocabs=[10, 12],
        type=ModelType.LM,
        eos_token_id=1,
        architecture={"model_type": "qwen3"},
    )

    options = make_model_options(config)

    assert options.type == ModelType.LM
    assert options.dim_vocabs == [10, 12]
    assert options.dim_vocab == 12
    assert options.eos_token_id == 1
    assert options.architecture == {"model_type": "qwen3"}
    assert options.index is None
    assert options.inference


def test_embedded_settings_take_precedence() -> None:
    config = UserEnsembleConfig(models=["a.pt"], dim_vocabs=[10], type=ModelType.S2S)
    settings = {
        "type": "lm",
        "dim_vocabs": [32],
        "architecture": {"model_type": "qwen3"},
        "inference": False,
        "unknown_setting": "ignored",
    }

    options = make_model_options(config, settings)

    assert options.type == ModelType.LM
    assert options.dim_vocabs == [32]
    assert options.architecture == {"model_type": "qwen3"}
    assert options.inference


def test_invalid_embedded_settings() -> None:
    config = UserEnsembleConfig(models=["a.pt"], dim_vocabs=[10])

    with pytest.raises(ConfigurationError, match="Invalid model options"):
        make_model_options(config, {"type": "rnn"})
