"""Read-only batch structures consumed by scorers.

Exports:
    CorpusBatch: Parallel input streams of one batch of sentences.
    SubBatch: Padded token ids of a single input stream.
"""

from .batch import CorpusBatch, SubBatch

__all__ = ["CorpusBatch", "SubBatch"]
