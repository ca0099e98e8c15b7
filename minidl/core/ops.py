"""Element-wise arithmetic and math over :class:`NDArray`."""

from __future__ import annotations

from typing import Callable

import numpy as np

from .errors import ShapeMismatchError
from .ndarray import NDArray, Operand
from .types import Array, is_scalar


def _require_array(value: object, name: str) -> NDArray:
    if not isinstance(value, NDArray):
        raise TypeError(f"{name} expects at least one NDArray operand, got {type(value).__name__}")
    return value


def add(lhs: Operand, rhs: Operand) -> NDArray:
    """Return ``lhs + rhs``; two arrays must share a shape, scalars apply everywhere."""

    if isinstance(lhs, NDArray):
        out = lhs.copy()
        out += rhs
        return out
    return _require_array(rhs, "add") + lhs


def subtract(lhs: Operand, rhs: Operand) -> NDArray:
    if isinstance(lhs, NDArray):
        out = lhs.copy()
        out -= rhs
        return out
    return lhs - _require_array(rhs, "subtract")


def multiply(lhs: Operand, rhs: Operand) -> NDArray:
    if isinstance(lhs, NDArray):
        out = lhs.copy()
        out *= rhs
        return out
    return _require_array(rhs, "multiply") * lhs


def divide(lhs: Operand, rhs: Operand) -> NDArray:
    if isinstance(lhs, NDArray):
        out = lhs.copy()
        out /= rhs
        return out
    return lhs / _require_array(rhs, "divide")


# ----------------------------------------------------------------------
# Unary transforms


def _unary(x: NDArray, fn: Callable[[Array], Array]) -> NDArray:
    with np.errstate(all="ignore"):
        values = fn(x.as_numpy())
    return NDArray(x.shape, values)


def exp(x: NDArray) -> NDArray:
    return _unary(x, np.exp)


def sqrt(x: NDArray) -> NDArray:
    """Element-wise square root; negative inputs yield NaN."""

    return _unary(x, np.sqrt)


def log(x: NDArray) -> NDArray:
    """Element-wise natural log; zero yields ``-inf`` and negatives NaN."""

    return _unary(x, np.log)


def square(x: NDArray) -> NDArray:
    return x * x


def clip(x: NDArray, low: float, high: float) -> NDArray:
    return _unary(x, lambda values: np.clip(values, low, high))


def maximum(x: NDArray, value: float) -> NDArray:
    return _unary(x, lambda values: np.maximum(values, value))


def greater(x: NDArray, value: float) -> NDArray:
    """Return ``1.0`` where ``x > value`` and ``0.0`` elsewhere."""

    return _unary(x, lambda values: (values > value).astype(np.float64))


# ----------------------------------------------------------------------
# Reductions


def total(x: NDArray) -> float:
    return float(np.sum(x.data))


def mean(x: NDArray) -> float:
    if x.numel() == 0:
        raise ValueError("mean() of an empty array")
    return float(np.mean(x.data))


def isfinite_all(x: NDArray) -> bool:
    return bool(np.all(np.isfinite(x.data)))


def sum_rows(x: NDArray) -> NDArray:
    """Sum a ``[rows, cols]`` array over its rows, giving ``[cols]``."""

    _require_rank(x, 2, "sum_rows")
    return NDArray((x.shape[1],), np.sum(x.as_numpy(), axis=0))


# ----------------------------------------------------------------------
# Matrix kernels used by the dense layer


def _require_rank(x: NDArray, rank: int, name: str) -> None:
    if x.ndim != rank:
        raise ShapeMismatchError(f"{name} expects a rank-{rank} array, got shape {list(x.shape)}")


def matmul(a: NDArray, b: NDArray) -> NDArray:
    """``a @ b`` for ``[m, k]`` and ``[k, n]`` arrays."""

    _require_rank(a, 2, "matmul")
    _require_rank(b, 2, "matmul")
    if a.shape[1] != b.shape[0]:
        raise ShapeMismatchError(
            "Inner dimensions must agree for matmul", expected=(a.shape[1],), actual=(b.shape[0],)
        )
    return NDArray.from_numpy(a.as_numpy() @ b.as_numpy())


def matmul_nt(a: NDArray, b: NDArray) -> NDArray:
    """``a @ b.T`` for ``[m, k]`` and ``[n, k]`` arrays."""

    _require_rank(a, 2, "matmul_nt")
    _require_rank(b, 2, "matmul_nt")
    if a.shape[1] != b.shape[1]:
        raise ShapeMismatchError(
            "Inner dimensions must agree for matmul_nt",
            expected=(a.shape[1],),
            actual=(b.shape[1],),
        )
    return NDArray.from_numpy(a.as_numpy() @ b.as_numpy().T)


def matmul_tn(a: NDArray, b: NDArray) -> NDArray:
    """``a.T @ b`` for ``[k, m]`` and ``[k, n]`` arrays."""

    _require_rank(a, 2, "matmul_tn")
    _require_rank(b, 2, "matmul_tn")
    if a.shape[0] != b.shape[0]:
        raise ShapeMismatchError(
            "Leading dimensions must agree for matmul_tn",
            expected=(a.shape[0],),
            actual=(b.shape[0],),
        )
    return NDArray.from_numpy(a.as_numpy().T @ b.as_numpy())


def add_row(x: NDArray, row: NDArray) -> NDArray:
    """Add a ``[cols]`` vector to every row of a ``[rows, cols]`` array."""

    _require_rank(x, 2, "add_row")
    if row.shape != (x.shape[1],):
        raise ShapeMismatchError(
            "Row vector must match the column count", expected=(x.shape[1],), actual=row.shape
        )
    return NDArray(x.shape, x.as_numpy() + row.as_numpy())


def scalar_operand(value: object) -> float:
    if not is_scalar(value):
        raise TypeError(f"Expected a real scalar, got {type(value).__name__}")
    return float(value)  # type: ignore[arg-type]


__all__ = [
    "add",
    "add_row",
    "clip",
    "divide",
    "exp",
    "greater",
    "isfinite_all",
    "log",
    "matmul",
    "matmul_nt",
    "matmul_tn",
    "maximum",
    "mean",
    "multiply",
    "scalar_operand",
    "sqrt",
    "square",
    "subtract",
    "sum_rows",
    "total",
]
