"""Inference basis consumed by the scorers.

Exports:
    ComputeContext: Namespaced parameter store shared by scorers.
    DecoderState: Recurrent state of an encoder-decoder.
    DecoderStateT: Type variable bound to `DecoderState`.
    EncoderDecoder: Neural sequence model interface.
"""

from .interface import ComputeContext, DecoderState, DecoderStateT, EncoderDecoder

__all__ = [
    "ComputeContext",
    "DecoderState",
    "DecoderStateT",
    "EncoderDecoder",
]
