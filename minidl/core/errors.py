"""Exception hierarchy for minidl."""

from __future__ import annotations

from typing import Sequence


class MiniDLError(Exception):
    """Base class for every error raised by minidl."""


class ShapeMismatchError(MiniDLError, ValueError):
    """Operand shapes disagree where equality is required."""

    def __init__(
        self,
        message: str,
        *,
        expected: Sequence[int] | None = None,
        actual: Sequence[int] | None = None,
    ) -> None:
        if expected is not None or actual is not None:
            message = f"{message} (expected {_fmt(expected)}, got {_fmt(actual)})"
        super().__init__(message)
        self.expected = tuple(expected) if expected is not None else None
        self.actual = tuple(actual) if actual is not None else None


class IndexOutOfRangeError(MiniDLError, IndexError):
    """A multi-index or flat index falls outside the array bounds."""


class NumericDegeneracyError(MiniDLError, FloatingPointError):
    """A computation produced NaN or infinity."""


class StatefulnessError(MiniDLError, RuntimeError):
    """An operation was called out of its required order."""


def _fmt(shape: Sequence[int] | None) -> str:
    if shape is None:
        return "?"
    return "[" + ", ".join(str(int(d)) for d in shape) + "]"


__all__ = [
    "MiniDLError",
    "ShapeMismatchError",
    "IndexOutOfRangeError",
    "NumericDegeneracyError",
    "StatefulnessError",
]
