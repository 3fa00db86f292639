"""Provide `ParameterContext`, the default implementation of `ComputeContext`."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from typing_extensions import override

import torch

from beam_ensemble.infer import ComputeContext

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ["ContextImpl", "ParameterContext"]

DEFAULT_NAMESPACE = "default"


class ParameterContext(ComputeContext):
    """Keeps parameters and scratch of several models side by side, one namespace per model.

    Refers to the protocol `ComputeContext` for more details.

    Attributes:
        _device (torch.device): Device of tensors created through this context.
        _dtype (torch.dtype): Floating point type of tensors created through this context.
        _namespace (str): Current namespace.
        _params (dict[str, dict[str, torch.Tensor]]): Parameters per namespace.
        _scratch (dict[str, dict[str, Any]]): Scratch per namespace.
    """

    _device: torch.device
    _dtype: torch.dtype
    _namespace: str
    _params: dict[str, dict[str, torch.Tensor]]
    _scratch: dict[str, dict[str, Any]]

    def __init__(
        self, device: str | torch.device = "cpu", dtype: torch.dtype = torch.float32
    ) -> None:
        self._device = torch.device(device)
        self._dtype = dtype
        self._params = {}
        self._scratch = {}
        self.switch_params(DEFAULT_NAMESPACE)

    @property
    @override
    def device(self) -> torch.device:
        return self._device

    @property
    @override
    def dtype(self) -> torch.dtype:
        return self._dtype

    @property
    @override
    def namespace(self) -> str:
        return self._namespace

    @property
    @override
    def params(self) -> dict[str, torch.Tensor]:
        return self._params[self._namespace]

    @property
    @override
    def scratch(self) -> dict[str, Any]:
        return self._scratch[self._namespace]

    @property
    def namespaces(self) -> tuple[str, ...]:
        """Names of all namespaces created so far."""
        return tuple(self._params)

    @override
    def switch_params(self, name: str) -> None:
        if not name:
            raise ValueError("Namespace name must not be empty.")

        self._params.setdefault(name, {})
        self._scratch.setdefault(name, {})
        self._namespace = name

    @override
    def clear_scratch(self) -> None:
        self._scratch[self._namespace].clear()

    @override
    def constant(self, values: Sequence[float]) -> torch.Tensor:
        return torch.tensor([list(values)], device=self._device, dtype=self._dtype)


ContextImpl = ParameterContext
