"""`EncoderDecoder` implementations backed by `transformers` models.

Exports:
    CausalLanguageModel: Decoder-only language model.
    Seq2SeqModel: Encoder-decoder translation model.
"""

from .causal_lm import CausalLanguageModel
from .seq2seq import Seq2SeqModel

__all__ = ["CausalLanguageModel", "Seq2SeqModel"]
