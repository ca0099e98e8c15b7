"""Loss functions and the loss registry used by the network."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

from ..core import ops
from ..core.errors import ShapeMismatchError
from ..core.ndarray import NDArray

LossFn = Callable[[NDArray, NDArray], NDArray]


def _check_shapes(y_pred: NDArray, y_true: NDArray) -> None:
    if y_pred.shape != y_true.shape:
        raise ShapeMismatchError(
            "Predictions and targets must share a shape",
            expected=y_pred.shape,
            actual=y_true.shape,
        )


class BinaryCrossEntropy:
    """Element-wise binary cross-entropy on probabilities.

    Predictions are clamped to ``[EPS, 1 - EPS]`` before use so that neither
    ``log(0)`` nor a zero denominator can occur. Near saturation this biases
    the gradient instead of failing.
    """

    EPS = 1e-7

    @classmethod
    def _clamped(cls, y_pred: NDArray) -> NDArray:
        return ops.clip(y_pred, cls.EPS, 1.0 - cls.EPS)

    @classmethod
    def forward(cls, y_pred: NDArray, y_true: NDArray) -> NDArray:
        """Per-element ``-(y log p + (1 - y) log(1 - p))``; not reduced."""

        _check_shapes(y_pred, y_true)
        p = cls._clamped(y_pred)
        return -(y_true * ops.log(p) + (1.0 - y_true) * ops.log(1.0 - p))

    @classmethod
    def backward(cls, y_pred: NDArray, y_true: NDArray) -> NDArray:
        """Per-element ``(p - y) / (p (1 - p))``."""

        _check_shapes(y_pred, y_true)
        p = cls._clamped(y_pred)
        return (p - y_true) / (p * (1.0 - p))


class MeanSquaredError:
    @staticmethod
    def forward(y_pred: NDArray, y_true: NDArray) -> NDArray:
        _check_shapes(y_pred, y_true)
        return ops.square(y_pred - y_true)

    @staticmethod
    def backward(y_pred: NDArray, y_true: NDArray) -> NDArray:
        _check_shapes(y_pred, y_true)
        return 2.0 * (y_pred - y_true)


@dataclass(frozen=True)
class Loss:
    """Named pair of per-element loss and gradient functions."""

    name: str
    forward: LossFn
    backward: LossFn

    def mean(self, y_pred: NDArray, y_true: NDArray) -> float:
        """Mean of the per-element loss over every element."""

        return ops.mean(self.forward(y_pred, y_true))

    def __call__(self, y_pred: NDArray, y_true: NDArray) -> tuple[float, NDArray]:
        return self.mean(y_pred, y_true), self.backward(y_pred, y_true)


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, name: str, forward: LossFn, backward: LossFn) -> None:
        self._registry[name] = Loss(name, forward, backward)

    def get(self, name: str) -> Loss:
        try:
            return self._registry[name]
        except KeyError as exc:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}") from exc

    def names(self) -> Iterable[str]:
        return sorted(self._registry)


REGISTRY = LossRegistry()
REGISTRY.register("bce", BinaryCrossEntropy.forward, BinaryCrossEntropy.backward)
REGISTRY.register("mse", MeanSquaredError.forward, MeanSquaredError.backward)

__all__ = ["BinaryCrossEntropy", "Loss", "LossRegistry", "MeanSquaredError", "REGISTRY"]
