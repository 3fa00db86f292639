from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import torch
from transformers import AutoConfig, AutoModelForCausalLM, AutoModelForSeq2SeqLM

from beam_ensemble.artifact import save_artifact
from beam_ensemble.infer.impl.context import ParameterContext
from beam_ensemble.testing.infer.constants import (
    MARIAN_ARCHITECTURE,
    QWEN3_ARCHITECTURE,
    TINY_VOCAB_SIZE,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def context() -> ParameterContext:
    return ParameterContext()


@pytest.fixture(scope="session")
def marian_artifact(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """A tiny randomly initialized Marian model, with its settings embedded."""
    torch.manual_seed(0)
    hf_model = AutoModelForSeq2SeqLM.from_config(AutoConfig.for_model(**MARIAN_ARCHITECTURE))

    path = tmp_path_factory.mktemp("artifacts") / "marian.pt"
    save_artifact(
        path,
        hf_model.state_dict(),
        settings={
            "type": "s2s",
            "dim_vocabs": [TINY_VOCAB_SIZE, TINY_VOCAB_SIZE],
            "architecture": MARIAN_ARCHITECTURE,
        },
    )
    return path


@pytest.fixture(scope="session")
def qwen3_artifact(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """A tiny randomly initialized Qwen3 model, with its settings embedded."""
    torch.manual_seed(0)
    hf_model = AutoModelForCausalLM.from_config(AutoConfig.for_model(**QWEN3_ARCHITECTURE))

    path = tmp_path_factory.mktemp("artifacts") / "qwen3.pt"
    save_artifact(
        path,
        hf_model.state_dict(),
        settings={
            "type": "lm",
            "dim_vocabs": [TINY_VOCAB_SIZE],
            "architecture": QWEN3_ARCHITECTURE,
        },
    )
    return path


@pytest.fixture
def fake_artifact(tmp_path: Path) -> Path:
    """An artifact with a single parameter and no embedded settings."""
    path = tmp_path / "fake.pt"
    save_artifact(path, {"weight": torch.ones(2, 2)})
    return path
