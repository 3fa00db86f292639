"""Registry for available model types."""

from enum import StrEnum, auto

__all__ = ["ModelType"]


class ModelType(StrEnum):
    """Implemented `EncoderDecoder` types.

    Attributes:
        S2S: Encoder-decoder translation model, scoring targets conditioned on an input stream.
        LM: Decoder-only language model, scoring targets without looking at the inputs.
    """

    S2S = auto()
    LM = auto()
