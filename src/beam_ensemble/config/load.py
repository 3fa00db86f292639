"""Provide `load_config` and `make_model_options`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from beam_ensemble.errors import ConfigurationError

from .external import UserEnsembleConfig
from .internal import ModelOptions

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = ["load_config", "make_model_options"]


def load_config(config_path: str) -> UserEnsembleConfig:
    """Load user specified configuration from file.

    Args:
        config_path (str): Path to the user specified TOML configuration file.

    Returns:
        UserEnsembleConfig: The validated configuration.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid TOML, or fails validation.
    """
    try:
        return UserEnsembleConfig.from_toml(config_path)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file {config_path} does not exist.") from e
    except ValueError as e:
        # covers both tomllib.TOMLDecodeError and pydantic.ValidationError
        raise ConfigurationError(f"Invalid config file {config_path}: {e}") from e


def make_model_options(
    user_config: UserEnsembleConfig, model_settings: Mapping[str, Any] | None = None
) -> ModelOptions:
    """Translate the user configuration into `ModelOptions` for one model.

    Settings embedded in the model artifact take precedence over the user configuration.
    `inference` is always forced on.

    Args:
        user_config (UserEnsembleConfig): User specified configuration.
        model_settings (Mapping[str, Any] | None): Settings embedded in the model artifact.

    Returns:
        ModelOptions: Options for assembling the model.

    Raises:
        ConfigurationError: If the merged options are invalid.
    """
    options: dict[str, Any] = {
        "type": user_config.type,
        "dim_vocabs": user_config.dim_vocabs,
        "pad_token_id": user_config.pad_token_id,
        "eos_token_id": user_config.eos_token_id,
        "architecture": user_config.architecture,
    }
    if model_settings is not None:
        options.update(
            (key, value) for key, value in model_settings.items() if key in ModelOptions.model_fields
        )
    options["inference"] = True

    try:
        return ModelOptions.model_validate(options)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid model options: {e}") from e
