"""Sequential network of dense layers and activations trained with Adam."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Mapping, Sequence, Type, Union

import numpy as np

from ..core.activations import Activation, ReLU, Sigmoid, get_activation
from ..core.errors import NumericDegeneracyError, ShapeMismatchError, StatefulnessError
from ..core.factory import default_rng
from ..core.layers import DenseLayer
from ..core.ndarray import NDArray
from ..core.types import NetworkSummary, StageSummary
from .losses import REGISTRY as LOSS_REGISTRY
from .optim import Optimizer, make_optimizer


class NetworkState(Enum):
    """Position of a network in its forward/backward/optimise cycle."""

    BUILT = "built"
    FORWARDED = "forwarded"
    BACKPROPAGATED = "backpropagated"
    OPTIMIZED = "optimized"


@dataclass(frozen=True)
class DenseStage:
    """Stage applying ``Network.dense_layers[index]``."""

    index: int


@dataclass(frozen=True)
class ActivationStage:
    """Stage applying a parameter-free activation."""

    activation: Type[Activation]

    def backward_cache(
        self,
        position: int,
        pre_activations: Sequence[NDArray],
        activations: Sequence[NDArray],
    ) -> NDArray:
        """Return the cached tensor this activation's derivative is defined on."""

        if self.activation.backward_input == "input":
            return pre_activations[position]
        return activations[position + 1]


Stage = Union[DenseStage, ActivationStage]


class Network:
    """An ordered pipeline of dense layers and activations.

    Every dense layer owns an optimiser created with the network's learning
    rate at the time the layer is added. :meth:`forward` rebuilds the
    ``activations`` cache (the input followed by every stage output) and the
    ``pre_activations`` cache (the input of every stage); :meth:`backward`
    consumes them and :meth:`optimize` applies the resulting gradients. The
    calls must follow that order: out-of-order calls raise
    :class:`StatefulnessError`.

    A network is not safe for concurrent use. Do not call ``forward``,
    ``backward`` or ``optimize`` from several threads, and never let two
    :meth:`train_step` calls overlap.
    """

    def __init__(
        self,
        learning_rate: float = 0.001,
        *,
        optimizer: str = "adam",
        loss: str = "bce",
        rng: np.random.Generator | None = None,
        seed: int | None = None,
        init: str = "kaiming_normal",
        check_finite: bool = False,
        log_every: int = 10,
    ) -> None:
        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both")
        if log_every <= 0:
            raise ValueError("log_every must be positive")
        self.learning_rate = float(learning_rate)
        self.optimizer_name = optimizer
        self.init = init
        self.check_finite = check_finite
        self.log_every = int(log_every)
        self._loss = LOSS_REGISTRY.get(loss)
        self._rng = rng if rng is not None else default_rng(seed)

        self._stages: List[Stage] = []
        self._dense_layers: List[DenseLayer] = []
        self._optimizers: List[Optimizer] = []
        self.activations: List[NDArray] = []
        self.pre_activations: List[NDArray] = []
        self._state = NetworkState.BUILT

    # ------------------------------------------------------------------
    # Construction

    def add_dense(self, in_features: int, out_features: int, use_bias: bool = True) -> "Network":
        layer = DenseLayer(in_features, out_features, use_bias, rng=self._rng, init=self.init)
        self._dense_layers.append(layer)
        self._optimizers.append(make_optimizer(self.optimizer_name, self.learning_rate))
        self._stages.append(DenseStage(index=len(self._dense_layers) - 1))
        return self

    def add_activation(self, name: str) -> "Network":
        self._stages.append(ActivationStage(get_activation(name)))
        return self

    def add_relu(self) -> "Network":
        self._stages.append(ActivationStage(ReLU))
        return self

    def add_sigmoid(self) -> "Network":
        self._stages.append(ActivationStage(Sigmoid))
        return self

    @property
    def stages(self) -> tuple[Stage, ...]:
        return tuple(self._stages)

    @property
    def dense_layers(self) -> tuple[DenseLayer, ...]:
        return tuple(self._dense_layers)

    @property
    def optimizers(self) -> tuple[Optimizer, ...]:
        return tuple(self._optimizers)

    @property
    def state(self) -> NetworkState:
        return self._state

    @property
    def loss_name(self) -> str:
        return self._loss.name

    def __len__(self) -> int:
        return len(self._stages)

    # ------------------------------------------------------------------
    # Forward / backward / optimise

    def forward(self, inputs: NDArray) -> NDArray:
        """Run ``inputs`` through every stage and return the last output."""

        current = inputs.copy()
        activations = [current]
        pre_activations: List[NDArray] = []
        for stage in self._stages:
            pre_activations.append(current)
            current = self._forward_stage(stage, current)
            activations.append(current)
        self.activations = activations
        self.pre_activations = pre_activations
        self._state = NetworkState.FORWARDED
        return current

    def _forward_stage(self, stage: Stage, inputs: NDArray) -> NDArray:
        if isinstance(stage, DenseStage):
            return self._dense_layers[stage.index].forward(inputs)
        if isinstance(stage, ActivationStage):
            return stage.activation.forward(inputs)
        raise TypeError(f"Unknown stage: {stage!r}")

    def backward(self, y_pred: NDArray, y_true: NDArray) -> None:
        """Propagate the loss gradient through every stage, last to first."""

        if self._state is not NetworkState.FORWARDED:
            raise StatefulnessError(
                f"backward requires a preceding forward pass (state: {self._state.value})"
            )
        output_shape = self.activations[-1].shape
        if y_pred.shape != output_shape:
            raise ShapeMismatchError(
                "Predictions do not match the cached forward output",
                expected=output_shape,
                actual=y_pred.shape,
            )

        grad = self._loss.backward(y_pred, y_true)
        for position in range(len(self._stages) - 1, -1, -1):
            stage = self._stages[position]
            if isinstance(stage, DenseStage):
                grad = self._dense_layers[stage.index].backward(grad)
            elif isinstance(stage, ActivationStage):
                cached = stage.backward_cache(position, self.pre_activations, self.activations)
                grad = grad * stage.activation.backward(cached)
            else:
                raise TypeError(f"Unknown stage: {stage!r}")
        self._state = NetworkState.BACKPROPAGATED

    def optimize(self) -> None:
        """Apply every dense layer's gradients through its optimiser."""

        if self._state is not NetworkState.BACKPROPAGATED:
            raise StatefulnessError(
                f"optimize requires a preceding backward pass (state: {self._state.value})"
            )
        for layer, optimizer in zip(self._dense_layers, self._optimizers):
            weight = layer.weight.copy()
            bias = layer.bias.copy() if layer.bias is not None else None
            optimizer.update(weight, layer.weight_grad, bias, layer.bias_grad)
            layer.weight = weight
            if bias is not None:
                layer.bias = bias
        self._state = NetworkState.OPTIMIZED

    def zero_grad(self) -> None:
        for layer in self._dense_layers:
            layer.zero_grad()

    # ------------------------------------------------------------------
    # Training

    def train_step(self, inputs: NDArray, targets: NDArray) -> float:
        """Run one full forward/backward/update cycle and return the mean loss."""

        if inputs.ndim == 0 or targets.ndim == 0 or inputs.shape[0] != targets.shape[0]:
            raise ShapeMismatchError(
                "Inputs and targets must have the same batch size",
                expected=inputs.shape[:1],
                actual=targets.shape[:1],
            )
        if inputs.shape[0] == 0:
            raise ShapeMismatchError("Cannot train on an empty batch", actual=inputs.shape)
        self.zero_grad()
        output = self.forward(inputs)
        loss = self._loss.mean(output, targets)
        if self.check_finite and not math.isfinite(loss):
            raise NumericDegeneracyError(f"Training step produced a non-finite loss: {loss}")
        self.backward(output, targets)
        self.optimize()
        return loss

    def train(
        self,
        inputs: NDArray,
        targets: NDArray,
        epochs: int = 100,
        verbose: bool = True,
        callbacks: Iterable[object] | None = None,
    ) -> List[float]:
        """Repeat :meth:`train_step` on the same full batch for ``epochs`` epochs.

        Returns the per-epoch losses. Callbacks receive
        ``on_epoch(epoch, {"loss": value})`` (or are called directly when they
        are plain callables).
        """

        if epochs < 0:
            raise ValueError("epochs must be non-negative")
        callbacks = list(callbacks or [])
        history: List[float] = []
        for epoch in range(1, epochs + 1):
            loss = self.train_step(inputs, targets)
            history.append(loss)
            self._emit_epoch(epoch, {"loss": loss}, callbacks)
            if verbose and epoch % self.log_every == 0:
                print(f"Epoch {epoch}/{epochs} - Loss: {loss:.6f}")
        return history

    def predict(self, inputs: NDArray) -> NDArray:
        return self.forward(inputs)

    @staticmethod
    def _emit_epoch(
        epoch: int, metrics: Mapping[str, float], callbacks: Sequence[object]
    ) -> None:
        for callback in callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)

    # ------------------------------------------------------------------
    # Introspection

    def summary(self) -> NetworkSummary:
        rows: List[StageSummary] = []
        width: int | None = None
        total = 0
        for stage in self._stages:
            if isinstance(stage, DenseStage):
                layer = self._dense_layers[stage.index]
                params = layer.num_parameters()
                rows.append(StageSummary("Dense", layer.in_features, layer.out_features, params))
                width = layer.out_features
                total += params
            else:
                rows.append(StageSummary(stage.activation.__name__, width, width))
        return NetworkSummary(
            stages=rows, dense_layers=len(self._dense_layers), total_parameters=total
        )

    def parameter_count(self) -> int:
        return sum(layer.num_parameters() for layer in self._dense_layers)

    def __repr__(self) -> str:
        names = []
        for stage in self._stages:
            if isinstance(stage, DenseStage):
                layer = self._dense_layers[stage.index]
                names.append(f"Dense({layer.in_features}->{layer.out_features})")
            else:
                names.append(stage.activation.__name__)
        return f"Network([{', '.join(names)}], learning_rate={self.learning_rate})"


__all__ = ["ActivationStage", "DenseStage", "Network", "NetworkState", "Stage"]
