"""Parameter update rules applied to dense layer weights and biases."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Protocol, Type

from ..core import ops
from ..core.errors import ShapeMismatchError
from ..core.factory import zeros
from ..core.ndarray import NDArray


class Optimizer(Protocol):
    """Protocol implemented by the per-layer optimisers."""

    learning_rate: float

    def update(
        self,
        weight: NDArray,
        weight_grad: NDArray,
        bias: NDArray | None = None,
        bias_grad: NDArray | None = None,
    ) -> None:
        """Mutate ``weight`` and ``bias`` in place using their gradients."""


def _check_pair(param: NDArray, grad: NDArray, name: str) -> None:
    if param.shape != grad.shape:
        raise ShapeMismatchError(
            f"{name} gradient does not match its parameter",
            expected=param.shape,
            actual=grad.shape,
        )


def _check_bias_args(bias: NDArray | None, bias_grad: NDArray | None) -> None:
    if (bias is None) != (bias_grad is None):
        raise ValueError("bias and bias_grad must be given together")
    if bias is not None and bias_grad is not None:
        _check_pair(bias, bias_grad, "bias")


@dataclass
class AdamOptimizer:
    """Adam with bias-corrected first and second moment estimates.

    One instance serves one weight/bias pair. The moment buffers are shaped on
    the first :meth:`update` call and every later call must pass parameters of
    the same shapes. ``step`` counts updates and never resets.
    """

    learning_rate: float = 0.001
    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = 1e-8
    step: int = field(default=0, init=False)
    first_moment_weight: NDArray | None = field(default=None, init=False, repr=False)
    second_moment_weight: NDArray | None = field(default=None, init=False, repr=False)
    first_moment_bias: NDArray | None = field(default=None, init=False, repr=False)
    second_moment_bias: NDArray | None = field(default=None, init=False, repr=False)

    def update(
        self,
        weight: NDArray,
        weight_grad: NDArray,
        bias: NDArray | None = None,
        bias_grad: NDArray | None = None,
    ) -> None:
        _check_pair(weight, weight_grad, "weight")
        _check_bias_args(bias, bias_grad)
        if self.first_moment_weight is None:
            self._allocate(weight, bias)
        else:
            self._check_buffers(weight, bias)

        self.step += 1
        correction1 = 1.0 - self.beta1**self.step
        correction2 = 1.0 - self.beta2**self.step

        self._apply(
            weight,
            weight_grad,
            self.first_moment_weight,  # type: ignore[arg-type]
            self.second_moment_weight,  # type: ignore[arg-type]
            correction1,
            correction2,
        )
        if bias is not None and bias_grad is not None:
            self._apply(
                bias,
                bias_grad,
                self.first_moment_bias,  # type: ignore[arg-type]
                self.second_moment_bias,  # type: ignore[arg-type]
                correction1,
                correction2,
            )

    # ------------------------------------------------------------------
    # Helpers

    def _allocate(self, weight: NDArray, bias: NDArray | None) -> None:
        self.first_moment_weight = zeros(weight.shape)
        self.second_moment_weight = zeros(weight.shape)
        if bias is not None:
            self.first_moment_bias = zeros(bias.shape)
            self.second_moment_bias = zeros(bias.shape)

    def _check_buffers(self, weight: NDArray, bias: NDArray | None) -> None:
        first = self.first_moment_weight
        if first is not None and weight.shape != first.shape:
            raise ShapeMismatchError(
                "Weight shape changed between Adam updates",
                expected=first.shape,
                actual=weight.shape,
            )
        expected_bias = None if self.first_moment_bias is None else self.first_moment_bias.shape
        actual_bias = None if bias is None else bias.shape
        if expected_bias != actual_bias:
            raise ShapeMismatchError(
                "Bias shape changed between Adam updates",
                expected=expected_bias,
                actual=actual_bias,
            )

    def _apply(
        self,
        param: NDArray,
        grad: NDArray,
        m: NDArray,
        v: NDArray,
        correction1: float,
        correction2: float,
    ) -> None:
        m *= self.beta1
        m += (1.0 - self.beta1) * grad
        v *= self.beta2
        v += (1.0 - self.beta2) * (grad * grad)
        m_hat = m / correction1
        v_hat = v / correction2
        param -= self.learning_rate * m_hat / (ops.sqrt(v_hat) + self.epsilon)


@dataclass
class SGDOptimizer:
    """Vanilla gradient descent with the same interface as :class:`AdamOptimizer`."""

    learning_rate: float = 0.01
    step: int = field(default=0, init=False)

    def update(
        self,
        weight: NDArray,
        weight_grad: NDArray,
        bias: NDArray | None = None,
        bias_grad: NDArray | None = None,
    ) -> None:
        _check_pair(weight, weight_grad, "weight")
        _check_bias_args(bias, bias_grad)
        self.step += 1
        weight -= self.learning_rate * weight_grad
        if bias is not None and bias_grad is not None:
            bias -= self.learning_rate * bias_grad


OPTIMIZERS: Dict[str, Type[Optimizer]] = {
    "adam": AdamOptimizer,
    "sgd": SGDOptimizer,
}


def make_optimizer(name: str, learning_rate: float) -> Optimizer:
    key = name.lower()
    if key not in OPTIMIZERS:
        available = ", ".join(sorted(OPTIMIZERS))
        raise ValueError(f"Unknown optimizer {name!r}. Available: {available}")
    return OPTIMIZERS[key](learning_rate=learning_rate)


__all__ = ["AdamOptimizer", "OPTIMIZERS", "Optimizer", "SGDOptimizer", "make_optimizer"]
