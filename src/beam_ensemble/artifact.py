"""Read and write model artifacts.

An artifact is a file written by `torch.save` holding a mapping from parameter names to tensors.
It may additionally embed the model's settings as a JSON object under `SETTINGS_KEY`.
Artifacts are memory-mapped on load, so reading only the settings does not pull the
weights into memory.
"""

from __future__ import annotations

import json
import pickle
from pathlib import Path
from typing import TYPE_CHECKING, Any

import torch

from beam_ensemble.errors import AdvisoryMetadataMissingError, ArtifactLoadError

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = ["SETTINGS_KEY", "load_parameters", "load_settings", "save_artifact"]

SETTINGS_KEY = "special:model.json"


def save_artifact(
    path: str | Path,
    parameters: Mapping[str, torch.Tensor],
    settings: Mapping[str, Any] | None = None,
) -> None:
    """Save `parameters` and optional `settings` into a single artifact file.

    Args:
        path (str | Path): Destination of the artifact.
        parameters (Mapping[str, torch.Tensor]): Parameter tensors keyed by name.
        settings (Mapping[str, Any] | None): JSON serializable settings to embed.
    """
    content: dict[str, torch.Tensor | str] = {
        name: tensor.detach().cpu() for name, tensor in parameters.items()
    }
    if settings is not None:
        content[SETTINGS_KEY] = json.dumps(dict(settings))

    torch.save(content, Path(path))


def load_parameters(path: str | Path) -> dict[str, torch.Tensor]:
    """Load the parameter tensors stored in the artifact at `path`.

    Raises:
        ArtifactLoadError: If the file is missing, unreadable, or contains no tensors.
    """
    content = _load(path)
    parameters = {
        name: value for name, value in content.items() if isinstance(value, torch.Tensor)
    }
    if not parameters:
        raise ArtifactLoadError(f"No parameters found in model file {path}.")

    return parameters


def load_settings(path: str | Path) -> dict[str, Any]:
    """Load the settings embedded in the artifact at `path`.

    Raises:
        ArtifactLoadError: If the file is unreadable or the embedded settings are malformed.
        AdvisoryMetadataMissingError: If the artifact embeds no settings.
    """
    content = _load(path)
    if SETTINGS_KEY not in content:
        raise AdvisoryMetadataMissingError(f"No model settings found in model file {path}.")

    try:
        settings = json.loads(content[SETTINGS_KEY])
    except (TypeError, json.JSONDecodeError) as e:
        raise ArtifactLoadError(f"Malformed model settings in model file {path}.") from e

    if not isinstance(settings, dict):
        raise ArtifactLoadError(f"Model settings in {path} must be a JSON object.")

    return settings


def _load(path: str | Path) -> dict[str, Any]:
    try:
        content = torch.load(Path(path), map_location="cpu", weights_only=True, mmap=True)
    except FileNotFoundError as e:
        raise ArtifactLoadError(f"Model file {path} does not exist.") from e
    except (OSError, RuntimeError, EOFError, pickle.UnpicklingError) as e:
        raise ArtifactLoadError(f"Cannot read model file {path}: {e}") from e

    if not isinstance(content, dict):
        raise ArtifactLoadError(f"Model file {path} does not contain a parameter mapping.")

    return content
