"""Interfaces of the models and compute context consumed by scorers.

Exports:
    ComputeContext: Interface for the namespaced parameter store shared by scorers.
    DecoderState: Interface for the recurrent state of an encoder-decoder.
    DecoderStateT: Type variable bound to `DecoderState`.
    EncoderDecoder: Interface for neural sequence models.
"""

from .context import ComputeContext
from .encdec import DecoderState, DecoderStateT, EncoderDecoder

__all__ = [
    "ComputeContext",
    "DecoderState",
    "DecoderStateT",
    "EncoderDecoder",
]
