"""Core numerical primitives for minidl."""

from . import activations, errors, factory, ops, types
from .layers import DenseLayer
from .ndarray import NDArray

__all__ = ["DenseLayer", "NDArray", "activations", "errors", "factory", "ops", "types"]
