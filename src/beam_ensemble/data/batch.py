"""Define `CorpusBatch` and `SubBatch`."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple, overload

import torch

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

__all__ = ["CorpusBatch", "SubBatch"]


class SubBatch(NamedTuple):
    """Token ids of one input stream, padded to a common length.

    Attributes:
        token_ids (torch.Tensor): Token ids. Shape `[batch_size, max_length]`.
        mask (torch.Tensor): `1` at real tokens and `0` at padding. Shape `[batch_size, max_length]`.
    """

    token_ids: torch.Tensor
    mask: torch.Tensor

    @property
    def batch_size(self) -> int:
        return self.token_ids.size(0)

    def vocab_ids(self) -> set[int]:
        """Return the set of vocabulary ids appearing in this stream, padding excluded."""
        return set(self.token_ids[self.mask.bool()].tolist())

    @classmethod
    def from_token_ids(cls, sentences: Sequence[Sequence[int]], pad_token_id: int = 0) -> SubBatch:
        """Pad `sentences` to the length of the longest one.

        Raises:
            ValueError: If `sentences` is empty.
        """
        if not sentences:
            raise ValueError("Cannot build a SubBatch from zero sentences.")

        max_length = max(len(sentence) for sentence in sentences)
        token_ids = torch.full((len(sentences), max_length), pad_token_id, dtype=torch.long)
        mask = torch.zeros((len(sentences), max_length), dtype=torch.long)
        for row, sentence in enumerate(sentences):
            token_ids[row, : len(sentence)] = torch.as_tensor(sentence, dtype=torch.long)
            mask[row, : len(sentence)] = 1

        return cls(token_ids=token_ids, mask=mask)


class CorpusBatch:
    """A batch of sentences given as parallel input streams.

    Every stream holds the same number of sentences. Scorers only read from a batch.

    Attributes:
        streams (tuple[SubBatch, ...]): One `SubBatch` per configured input stream.
    """

    streams: tuple[SubBatch, ...]

    def __init__(self, streams: Sequence[SubBatch]) -> None:
        if not streams:
            raise ValueError("CorpusBatch needs at least one input stream.")

        sizes = {stream.batch_size for stream in streams}
        if len(sizes) != 1:
            raise ValueError(f"All input streams must hold the same number of sentences, got {sizes}.")

        self.streams = tuple(streams)

    @classmethod
    def from_token_ids(
        cls, *streams: Sequence[Sequence[int]], pad_token_id: int = 0
    ) -> CorpusBatch:
        """Build a batch from plain token id lists, one positional argument per input stream."""
        return cls([SubBatch.from_token_ids(sentences, pad_token_id) for sentences in streams])

    @property
    def size(self) -> int:
        """Number of sentences in the batch."""
        return self.streams[0].batch_size

    @overload
    def __getitem__(self, index: int) -> SubBatch: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[SubBatch, ...]: ...

    def __getitem__(self, index: int | slice) -> SubBatch | tuple[SubBatch, ...]:
        return self.streams[index]

    def __len__(self) -> int:
        return len(self.streams)

    def __iter__(self) -> Iterator[SubBatch]:
        return iter(self.streams)
