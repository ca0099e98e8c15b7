"""Shape-parameterised constructors and weight initialisation schemes.

Every random constructor draws from an explicit ``numpy.random.Generator``.
There is no process-wide engine: pass ``rng=default_rng(seed)`` for
reproducible tensors, or omit it to get a fresh, unseeded generator.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, Sequence

import numpy as np

from .errors import ShapeMismatchError
from .ndarray import NDArray
from .ops import scalar_operand
from .types import ShapeLike, normalize_shape

Initializer = Callable[..., NDArray]


def default_rng(seed: int | None = None) -> np.random.Generator:
    """Return a new random generator seeded with ``seed``."""

    return np.random.default_rng(seed)


def _rng(rng: np.random.Generator | None) -> np.random.Generator:
    return rng if rng is not None else np.random.default_rng()


# ----------------------------------------------------------------------
# Constant fills


def zeros(shape: ShapeLike) -> NDArray:
    return NDArray(shape)


def ones(shape: ShapeLike) -> NDArray:
    return full(shape, 1.0)


def full(shape: ShapeLike, value: float) -> NDArray:
    dims = normalize_shape(shape)
    return NDArray(dims, np.full(dims, scalar_operand(value), dtype=np.float64))


def zeros_like(t: NDArray) -> NDArray:
    return zeros(t.shape)


def ones_like(t: NDArray) -> NDArray:
    return ones(t.shape)


def clone(t: NDArray) -> NDArray:
    return t.copy()


# ----------------------------------------------------------------------
# Literal constructors


def tensor(values: Sequence) -> NDArray:
    """Build an array from (nested) literal values.

    ``tensor([[1, 2], [3, 4]])`` has shape ``[2, 2]`` and flat data
    ``[1, 2, 3, 4]``. Ragged nesting raises :class:`ShapeMismatchError`.
    """

    try:
        array = np.array(values, dtype=np.float64)
    except ValueError as exc:
        raise ShapeMismatchError(f"Ragged literal cannot form an array: {exc}") from exc
    return NDArray(array.shape, array)


def tensor_from(shape: ShapeLike, data: Sequence[float]) -> NDArray:
    return NDArray(shape, data)


def column_vector(values: Sequence[float]) -> NDArray:
    return NDArray((len(values), 1), values)


# ----------------------------------------------------------------------
# Random tensors


def rand(shape: ShapeLike, *, rng: np.random.Generator | None = None) -> NDArray:
    """Uniform samples from ``[0, 1)``."""

    return uniform(shape, 0.0, 1.0, rng=rng)


def randn(shape: ShapeLike, *, rng: np.random.Generator | None = None) -> NDArray:
    """Standard normal samples."""

    return normal(shape, 0.0, 1.0, rng=rng)


def uniform(
    shape: ShapeLike,
    low: float,
    high: float,
    *,
    rng: np.random.Generator | None = None,
) -> NDArray:
    dims = normalize_shape(shape)
    return NDArray(dims, _rng(rng).uniform(low, high, size=dims))


def normal(
    shape: ShapeLike,
    mean: float,
    std: float,
    *,
    rng: np.random.Generator | None = None,
) -> NDArray:
    dims = normalize_shape(shape)
    return NDArray(dims, _rng(rng).normal(mean, std, size=dims))


def rand_like(t: NDArray, *, rng: np.random.Generator | None = None) -> NDArray:
    return rand(t.shape, rng=rng)


def randn_like(t: NDArray, *, rng: np.random.Generator | None = None) -> NDArray:
    return randn(t.shape, rng=rng)


# ----------------------------------------------------------------------
# Sequences and special matrices


def arange(start: float, end: float, step: float = 1.0) -> NDArray:
    """Values from ``start`` up to (excluding) ``end`` spaced by ``step``."""

    if step == 0:
        raise ValueError("arange step must be non-zero")
    values = []
    current = float(start)
    while (step > 0 and current < end) or (step < 0 and current > end):
        values.append(current)
        current += step
    return NDArray((len(values),), values)


def linspace(start: float, end: float, steps: int) -> NDArray:
    if steps < 0:
        raise ValueError("linspace requires a non-negative number of steps")
    if steps == 1:
        return NDArray((1,), [float(start)])
    return NDArray((steps,), np.linspace(start, end, steps))


def eye(n: int) -> NDArray:
    out = zeros((n, n))
    for i in range(n):
        out[i, i] = 1.0
    return out


def diag(values: Sequence[float]) -> NDArray:
    n = len(values)
    out = zeros((n, n))
    for i, value in enumerate(values):
        out[i, i] = value
    return out


# ----------------------------------------------------------------------
# Weight initialisation
#
# Shapes follow the dense layer convention ``[fan_out, fan_in]``; a 1-D shape
# uses its single dimension for both fans.


def _fans(shape: ShapeLike) -> tuple[int, int]:
    dims = normalize_shape(shape)
    if not dims:
        raise ValueError("Weight initialisation needs at least one dimension")
    fan_out = dims[0]
    fan_in = dims[1] if len(dims) >= 2 else dims[0]
    if fan_in <= 0 or fan_out <= 0:
        raise ValueError(f"Weight initialisation needs positive fans, got shape {list(dims)}")
    return fan_in, fan_out


def xavier_uniform(shape: ShapeLike, *, rng: np.random.Generator | None = None) -> NDArray:
    fan_in, fan_out = _fans(shape)
    limit = math.sqrt(6.0 / (fan_in + fan_out))
    return uniform(shape, -limit, limit, rng=rng)


def xavier_normal(shape: ShapeLike, *, rng: np.random.Generator | None = None) -> NDArray:
    fan_in, fan_out = _fans(shape)
    std = math.sqrt(2.0 / (fan_in + fan_out))
    return normal(shape, 0.0, std, rng=rng)


def kaiming_uniform(shape: ShapeLike, *, rng: np.random.Generator | None = None) -> NDArray:
    fan_in, _ = _fans(shape)
    limit = math.sqrt(6.0 / fan_in)
    return uniform(shape, -limit, limit, rng=rng)


def kaiming_normal(shape: ShapeLike, *, rng: np.random.Generator | None = None) -> NDArray:
    """He initialisation, suited to layers followed by ReLU."""

    fan_in, _ = _fans(shape)
    std = math.sqrt(2.0 / fan_in)
    return normal(shape, 0.0, std, rng=rng)


INITIALIZERS: Dict[str, Initializer] = {
    "xavier_uniform": xavier_uniform,
    "xavier_normal": xavier_normal,
    "kaiming_uniform": kaiming_uniform,
    "kaiming_normal": kaiming_normal,
}


def get_initializer(name: str) -> Initializer:
    try:
        return INITIALIZERS[name]
    except KeyError as exc:
        available = ", ".join(sorted(INITIALIZERS))
        raise KeyError(f"Unknown initializer {name!r}. Available: {available}") from exc


__all__ = [
    "INITIALIZERS",
    "arange",
    "clone",
    "column_vector",
    "default_rng",
    "diag",
    "eye",
    "full",
    "get_initializer",
    "kaiming_normal",
    "kaiming_uniform",
    "linspace",
    "normal",
    "ones",
    "ones_like",
    "rand",
    "rand_like",
    "randn",
    "randn_like",
    "tensor",
    "tensor_from",
    "uniform",
    "xavier_normal",
    "xavier_uniform",
    "zeros",
    "zeros_like",
]
