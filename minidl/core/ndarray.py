"""Strided multi-dimensional array backed by a flat contiguous buffer."""

from __future__ import annotations

import operator
from typing import Iterable, Iterator, Sequence, Union

import numpy as np

from .errors import IndexOutOfRangeError, ShapeMismatchError
from .types import Array, Shape, ShapeLike, is_scalar, normalize_shape

Operand = Union["NDArray", int, float]


def compute_strides(shape: Sequence[int]) -> Shape:
    """Return the row-major strides of ``shape``.

    ``strides[-1]`` is always 1 and ``strides[i] == strides[i + 1] * shape[i + 1]``,
    so the stride table of ``[4, 2, 3]`` is ``[6, 3, 1]``.
    """

    strides = [0] * len(shape)
    if strides:
        strides[-1] = 1
        for axis in range(len(shape) - 2, -1, -1):
            strides[axis] = strides[axis + 1] * int(shape[axis + 1])
    return tuple(strides)


def numel(shape: Sequence[int]) -> int:
    """Return the number of elements described by ``shape``."""

    total = 1
    for dim in shape:
        total *= int(dim)
    return total


class NDArray:
    """A flat float64 buffer plus shape and stride metadata.

    Arrays behave as values: every arithmetic operator returns a new array and
    mutation only happens through element assignment or the compound
    assignment operators. Element-wise operators between two arrays require
    identical shapes and raise :class:`ShapeMismatchError` otherwise; a scalar
    operand is applied to every element. No other broadcasting is performed.

    ``len()`` and iteration walk the flat buffer in row-major order.
    """

    __slots__ = ("_shape", "_strides", "_data")

    # Make numpy scalars defer to the reflected operators below.
    __array_ufunc__ = None

    def __init__(
        self,
        shape: ShapeLike,
        data: Iterable[float] | Array | None = None,
    ) -> None:
        dims = normalize_shape(shape)
        size = numel(dims)
        if data is None:
            buffer = np.zeros(size, dtype=np.float64)
        else:
            buffer = np.array(data, dtype=np.float64).reshape(-1)
            if buffer.size != size:
                raise ShapeMismatchError(
                    f"Data holds {buffer.size} elements but shape {list(dims)} needs {size}"
                )
        self._shape = dims
        self._strides = compute_strides(dims)
        self._data = buffer

    # ------------------------------------------------------------------
    # Construction helpers

    @classmethod
    def from_numpy(cls, array: Array | Sequence[float]) -> "NDArray":
        """Copy a numpy array (or nested sequence) into a new :class:`NDArray`."""

        values = np.asarray(array, dtype=np.float64)
        return cls(values.shape, values)

    def copy(self) -> "NDArray":
        return NDArray(self._shape, self._data)

    def reshape(self, *shape: int | Sequence[int]) -> "NDArray":
        """Return a copy viewed with a new shape holding the same element count."""

        if len(shape) == 1 and not isinstance(shape[0], (int, np.integer)):
            dims = normalize_shape(shape[0])  # type: ignore[arg-type]
        else:
            dims = normalize_shape(shape)  # type: ignore[arg-type]
        if numel(dims) != self.numel():
            raise ShapeMismatchError(
                f"Cannot reshape {self.numel()} elements into {list(dims)}",
                expected=self._shape,
                actual=dims,
            )
        return NDArray(dims, self._data)

    # ------------------------------------------------------------------
    # Metadata

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def strides(self) -> Shape:
        return self._strides

    @property
    def ndim(self) -> int:
        return len(self._shape)

    @property
    def data(self) -> Array:
        """Read-only view of the flat buffer."""

        view = self._data.view()
        view.flags.writeable = False
        return view

    def numel(self) -> int:
        return int(self._data.size)

    def __len__(self) -> int:
        return self.numel()

    def __iter__(self) -> Iterator[float]:
        for value in self._data:
            yield float(value)

    # ------------------------------------------------------------------
    # Indexing

    def flatten_index(self, index: Sequence[int]) -> int:
        """Map a multi-index to its offset in the flat buffer."""

        components = tuple(index)
        if len(components) != len(self._shape):
            raise IndexOutOfRangeError(
                f"Index {list(components)} has {len(components)} components "
                f"but the array has {len(self._shape)} dimensions"
            )
        offset = 0
        for axis, (raw, dim, stride) in enumerate(zip(components, self._shape, self._strides)):
            position = operator.index(raw)
            if not 0 <= position < dim:
                raise IndexOutOfRangeError(
                    f"Index {position} is out of range for axis {axis} with size {dim}"
                )
            offset += position * stride
        return offset

    def _flat_offset(self, key: int | Sequence[int]) -> int:
        if isinstance(key, (tuple, list)):
            return self.flatten_index(key)
        position = operator.index(key)
        if not 0 <= position < self._data.size:
            raise IndexOutOfRangeError(
                f"Flat index {position} is out of range for {self._data.size} elements"
            )
        return position

    def __getitem__(self, key: int | Sequence[int]) -> float:
        return float(self._data[self._flat_offset(key)])

    def __setitem__(self, key: int | Sequence[int], value: float) -> None:
        self._data[self._flat_offset(key)] = float(value)

    def at(self, index: Sequence[int]) -> float:
        return self[tuple(index)]

    def set(self, index: Sequence[int], value: float) -> None:
        self[tuple(index)] = value

    # ------------------------------------------------------------------
    # Compound assignment primitives

    def _operand(self, other: object, op: str) -> Array | float | None:
        if isinstance(other, NDArray):
            if other._shape != self._shape:
                raise ShapeMismatchError(
                    f"Shapes must match for {op}", expected=self._shape, actual=other._shape
                )
            return other._data
        if is_scalar(other):
            return float(other)  # type: ignore[arg-type]
        return None

    def __iadd__(self, other: Operand) -> "NDArray":
        rhs = self._operand(other, "addition")
        if rhs is None:
            return NotImplemented
        self._data += rhs
        return self

    def __isub__(self, other: Operand) -> "NDArray":
        rhs = self._operand(other, "subtraction")
        if rhs is None:
            return NotImplemented
        self._data -= rhs
        return self

    def __imul__(self, other: Operand) -> "NDArray":
        rhs = self._operand(other, "multiplication")
        if rhs is None:
            return NotImplemented
        with np.errstate(over="ignore", invalid="ignore"):
            self._data *= rhs
        return self

    def __itruediv__(self, other: Operand) -> "NDArray":
        rhs = self._operand(other, "division")
        if rhs is None:
            return NotImplemented
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            self._data /= rhs
        return self

    # ------------------------------------------------------------------
    # Arithmetic returning new arrays

    def __neg__(self) -> "NDArray":
        return NDArray(self._shape, -self._data)

    def __add__(self, other: Operand) -> "NDArray":
        out = self.copy()
        return out.__iadd__(other)

    def __sub__(self, other: Operand) -> "NDArray":
        out = self.copy()
        return out.__isub__(other)

    def __mul__(self, other: Operand) -> "NDArray":
        out = self.copy()
        return out.__imul__(other)

    def __truediv__(self, other: Operand) -> "NDArray":
        out = self.copy()
        return out.__itruediv__(other)

    def __radd__(self, other: Operand) -> "NDArray":
        if not is_scalar(other):
            return NotImplemented
        return self + other

    def __rsub__(self, other: Operand) -> "NDArray":
        if not is_scalar(other):
            return NotImplemented
        out = -self
        out += other
        return out

    def __rmul__(self, other: Operand) -> "NDArray":
        if not is_scalar(other):
            return NotImplemented
        return self * other

    def __rtruediv__(self, other: Operand) -> "NDArray":
        if not is_scalar(other):
            return NotImplemented
        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            values = float(other) / self._data  # type: ignore[arg-type]
        return NDArray(self._shape, values)

    # ------------------------------------------------------------------
    # Comparison and conversion

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NDArray):
            return NotImplemented
        return self._shape == other._shape and bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore[assignment]

    def allclose(self, other: "NDArray", *, rtol: float = 1e-5, atol: float = 1e-8) -> bool:
        if self._shape != other.shape:
            return False
        return bool(np.allclose(self._data, other._data, rtol=rtol, atol=atol))

    def as_numpy(self) -> Array:
        """Read-only numpy view shaped like the array (no copy)."""

        view = self._data.reshape(self._shape)
        view.flags.writeable = False
        return view

    def to_numpy(self) -> Array:
        return self._data.reshape(self._shape).copy()

    def __array__(self, dtype=None, copy=None) -> Array:
        values = self.to_numpy()
        return values if dtype is None else values.astype(dtype)

    def tolist(self) -> list:
        return self.to_numpy().tolist()

    def item(self) -> float:
        if self._data.size != 1:
            raise ShapeMismatchError(
                f"item() requires a single element array, got shape {list(self._shape)}"
            )
        return float(self._data[0])

    # ------------------------------------------------------------------
    # Printing

    def __repr__(self) -> str:
        dims = ", ".join(str(d) for d in self._shape)
        return f"NDArray(shape=[{dims}], data={self._format_data()})"

    def _format_data(self) -> str:
        fmt = "{:.4f}".format
        if self.ndim == 1:
            return "[" + ", ".join(fmt(v) for v in self._data) + "]"
        if self.ndim == 2:
            rows, cols = self._shape
            body = ",\n ".join(
                "[" + ", ".join(fmt(self[r, c]) for c in range(cols)) + "]" for r in range(rows)
            )
            return "\n[" + body + "]"
        shown = ", ".join(fmt(v) for v in self._data[:10])
        suffix = ", ..." if self._data.size > 10 else ""
        return f"[{shown}{suffix}]"


__all__ = ["NDArray", "compute_strides", "numel"]
