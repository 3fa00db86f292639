"""Define `ComputeContext`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import MutableMapping, Sequence

    import torch

__all__ = ["ComputeContext"]


class ComputeContext(Protocol):
    """ComputeContext is shared by every scorer of an ensemble during a decoding run.

    It keeps model parameters in separate namespaces so that several models can coexist.
    Exactly one namespace is current at a time, and `params` and `scratch` always refer to it.
    A model must switch to its own namespace before touching either.
    """

    @property
    def device(self) -> torch.device:
        """Device on which tensors created through this context are placed."""
        ...

    @property
    def dtype(self) -> torch.dtype:
        """Floating point type of the tensors created through this context."""
        ...

    @property
    def namespace(self) -> str:
        """Name of the current parameter namespace."""
        ...

    @property
    def params(self) -> MutableMapping[str, torch.Tensor]:
        """Parameters of the current namespace, keyed by parameter name."""
        ...

    @property
    def scratch(self) -> MutableMapping[str, Any]:
        """Mutable scratch of the current namespace, dropped by `clear_scratch`."""
        ...

    def switch_params(self, name: str) -> None:
        """Make `name` the current namespace, creating it if it does not exist yet.

        Args:
            name (str): Namespace to switch to.
        """
        ...

    def clear_scratch(self) -> None:
        """Drop everything in the scratch of the current namespace.

        Parameters of the namespace are kept.
        """
        ...

    def constant(self, values: Sequence[float]) -> torch.Tensor:
        """Create a constant row tensor of shape `[1, len(values)]` on `device` with `dtype`."""
        ...
