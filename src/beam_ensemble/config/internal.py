"""Framework facing interface, defining per-model options handed to model factories."""

from typing import Any

from pydantic import BaseModel, Field

from .registry import ModelType

__all__ = ["ModelOptions"]


class ModelOptions(BaseModel):
    """Options for assembling one `EncoderDecoder`.

    Built from the user configuration, overridden by the settings embedded in the model artifact.

    Attributes:
        type (ModelType): The kind of model to assemble.
        dim_vocabs (list[int]): Vocabulary sizes, one per stream, the target vocabulary last.
        index (int | None): Input stream the model reads, `None` for the first one.
        inference (bool): Whether the model is assembled for decoding only.
        pad_token_id (int): Id of the padding token.
        eos_token_id (int): Id of the end-of-sequence token.
        architecture (dict[str, Any] | None): `transformers` configuration arguments,
            including `model_type`.
    """

    type: ModelType = ModelType.S2S
    dim_vocabs: list[int] = Field(min_length=1)
    index: int | None = Field(default=None, ge=0)
    inference: bool = True
    pad_token_id: int = Field(default=0, ge=0)
    eos_token_id: int = Field(default=2, ge=0)
    architecture: dict[str, Any] | None = None

    @property
    def dim_vocab(self) -> int:
        """Size of the target vocabulary."""
        return self.dim_vocabs[-1]
