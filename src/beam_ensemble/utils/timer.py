from __future__ import annotations

from time import perf_counter
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from types import TracebackType


class Timer:
    """Context manager measuring the wall time of its body.

    Attributes:
        name (str): Label of the measured section.
        elapsed_ms (float): Elapsed time in milliseconds, set on exit.
    """

    name: str
    start: float
    elapsed_ms: float

    def __init__(self, name: str) -> None:
        self.name = name
        self.elapsed_ms = 0.0

    def __enter__(self) -> Timer:
        self.start = perf_counter()
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc_val: BaseException | None,
        _exc_tb: TracebackType | None,
    ) -> bool:
        self.elapsed_ms = (perf_counter() - self.start) * 1000
        return False
