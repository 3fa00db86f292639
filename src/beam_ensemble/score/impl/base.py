from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING

from typing_extensions import override

from beam_ensemble.score import Scorer as ScorerProtocol
from beam_ensemble.score import ScoringStateT

if TYPE_CHECKING:
    from collections.abc import Sequence

    from beam_ensemble.data import CorpusBatch
    from beam_ensemble.infer import ComputeContext


class BaseScorer(ScorerProtocol[ScoringStateT]):
    """BaseScorer holds the identity of a scorer, its `name` and `weight`.

    Both are fixed at construction. Inheriting classes implement `clear`, `start_state`
    and `step`, and may override `init`.

    Attributes:
        _name (str): Unique name of the scorer.
        _weight (float): Combination weight of the scorer.
    """

    _name: str
    _weight: float

    def __init__(self, name: str, weight: float) -> None:
        if not name:
            raise ValueError("Scorer name must not be empty.")

        self._name = name
        self._weight = float(weight)

    @property
    @override
    def name(self) -> str:
        return self._name

    @property
    @override
    def weight(self) -> float:
        return self._weight

    @abstractmethod
    def clear(self, context: ComputeContext) -> None: ...

    @abstractmethod
    def start_state(self, context: ComputeContext, batch: CorpusBatch) -> ScoringStateT: ...

    @abstractmethod
    def step(
        self,
        context: ComputeContext,
        prior_state: ScoringStateT,
        hyp_indices: Sequence[int],
        emb_indices: Sequence[int],
    ) -> ScoringStateT: ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, weight={self._weight})"
