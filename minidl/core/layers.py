"""Fully-connected layer kernels."""

from __future__ import annotations

import numpy as np

from . import ops
from .errors import ShapeMismatchError, StatefulnessError
from .factory import get_initializer, zeros
from .ndarray import NDArray


class DenseLayer:
    """Fully-connected layer computing ``output = input @ weight.T + bias``.

    ``weight`` has shape ``[out_features, in_features]`` and ``bias`` shape
    ``[out_features]`` (``None`` when the layer is built with
    ``use_bias=False``). :meth:`forward` keeps a copy of its input for the
    following :meth:`backward` call, so forward and backward must alternate one
    to one. :meth:`backward` resets the gradients before accumulating the
    batch into them; call :meth:`zero_grad` between optimiser steps when the
    gradients are consumed elsewhere.
    """

    def __init__(
        self,
        in_features: int,
        out_features: int,
        use_bias: bool = True,
        *,
        rng: np.random.Generator | None = None,
        init: str = "kaiming_normal",
    ) -> None:
        if int(in_features) <= 0 or int(out_features) <= 0:
            raise ValueError(
                "DenseLayer needs positive feature counts, "
                f"got in={in_features}, out={out_features}"
            )
        self.in_features = int(in_features)
        self.out_features = int(out_features)
        self.use_bias = bool(use_bias)

        initializer = get_initializer(init)
        self._weight = initializer((self.out_features, self.in_features), rng=rng)
        self._bias = zeros((self.out_features,)) if self.use_bias else None

        self.weight_grad = zeros(self._weight.shape)
        self.bias_grad = zeros((self.out_features,)) if self.use_bias else None
        self.cached_input: NDArray | None = None

    # ------------------------------------------------------------------
    # Parameters

    @property
    def weight(self) -> NDArray:
        return self._weight

    @weight.setter
    def weight(self, value: NDArray) -> None:
        if value.shape != self._weight.shape:
            raise ShapeMismatchError(
                "Weight shape does not match the layer",
                expected=self._weight.shape,
                actual=value.shape,
            )
        self._weight = value.copy()

    @property
    def bias(self) -> NDArray | None:
        return self._bias

    @bias.setter
    def bias(self, value: NDArray | None) -> None:
        if self._bias is None:
            if value is not None:
                raise ValueError("Layer was built without a bias")
            return
        if value is None or value.shape != self._bias.shape:
            raise ShapeMismatchError(
                "Bias shape does not match the layer",
                expected=self._bias.shape,
                actual=None if value is None else value.shape,
            )
        self._bias = value.copy()

    def num_parameters(self) -> int:
        params = self.in_features * self.out_features
        if self.use_bias:
            params += self.out_features
        return params

    # ------------------------------------------------------------------
    # Kernels

    def forward(self, inputs: NDArray) -> NDArray:
        """Map ``[batch, in_features]`` to ``[batch, out_features]``."""

        if inputs.ndim != 2 or inputs.shape[1] != self.in_features:
            raise ShapeMismatchError(
                f"Dense input must be [batch, {self.in_features}], got {list(inputs.shape)}"
            )
        self.cached_input = inputs.copy()
        output = ops.matmul_nt(inputs, self._weight)
        if self._bias is not None:
            output = ops.add_row(output, self._bias)
        return output

    def backward(self, grad_output: NDArray) -> NDArray:
        """Accumulate parameter gradients and return the gradient for the input."""

        if self.cached_input is None:
            raise StatefulnessError("DenseLayer.backward called before forward")
        expected = (self.cached_input.shape[0], self.out_features)
        if grad_output.shape != expected:
            raise ShapeMismatchError(
                "Gradient does not match the cached forward batch",
                expected=expected,
                actual=grad_output.shape,
            )

        self.zero_grad()
        self.weight_grad += ops.matmul_tn(grad_output, self.cached_input)
        if self.bias_grad is not None:
            self.bias_grad += ops.sum_rows(grad_output)
        return ops.matmul(grad_output, self._weight)

    def update_weights(self, learning_rate: float) -> None:
        """Plain gradient descent step, independent of any optimiser state."""

        self._weight -= learning_rate * self.weight_grad
        if self._bias is not None and self.bias_grad is not None:
            self._bias -= learning_rate * self.bias_grad

    def zero_grad(self) -> None:
        self.weight_grad = zeros(self._weight.shape)
        if self.use_bias:
            self.bias_grad = zeros((self.out_features,))

    def __repr__(self) -> str:
        return (
            f"DenseLayer(in_features={self.in_features}, "
            f"out_features={self.out_features}, use_bias={self.use_bias})"
        )


__all__ = ["DenseLayer"]
