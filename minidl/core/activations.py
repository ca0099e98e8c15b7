"""Activation functions for minidl."""

from __future__ import annotations

from typing import ClassVar, Dict, Literal, Type

from . import ops
from .ndarray import NDArray

BackwardInput = Literal["input", "output"]


class Activation:
    """Stateless element-wise transform with a closed-form derivative.

    ``backward_input`` names the tensor :meth:`backward` expects: ``"input"``
    for the pre-activation values, ``"output"`` for the values returned by
    :meth:`forward`. :meth:`backward` returns the local derivative; callers
    multiply it into the upstream gradient.
    """

    name: ClassVar[str]
    backward_input: ClassVar[BackwardInput]

    @staticmethod
    def forward(x: NDArray) -> NDArray:
        raise NotImplementedError

    @staticmethod
    def backward(cached: NDArray) -> NDArray:
        raise NotImplementedError


class ReLU(Activation):
    name = "relu"
    backward_input = "input"

    @staticmethod
    def forward(x: NDArray) -> NDArray:
        """Return ``max(0, x)``."""

        return ops.maximum(x, 0.0)

    @staticmethod
    def backward(cached: NDArray) -> NDArray:
        """Return 1 where the pre-activation is strictly positive, else 0."""

        return ops.greater(cached, 0.0)


class Sigmoid(Activation):
    name = "sigmoid"
    backward_input = "output"

    @staticmethod
    def forward(x: NDArray) -> NDArray:
        return 1.0 / (1.0 + ops.exp(-x))

    @staticmethod
    def backward(cached: NDArray) -> NDArray:
        """Return ``y * (1 - y)`` for a sigmoid output ``y``."""

        return cached * (1.0 - cached)


ACTIVATIONS: Dict[str, Type[Activation]] = {
    ReLU.name: ReLU,
    Sigmoid.name: Sigmoid,
}


def get_activation(name: str) -> Type[Activation]:
    try:
        return ACTIVATIONS[name.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(ACTIVATIONS))
        raise KeyError(f"Unknown activation {name!r}. Available: {available}") from exc


__all__ = ["ACTIVATIONS", "Activation", "ReLU", "Sigmoid", "get_activation"]
