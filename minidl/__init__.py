"""minidl public API."""

from .core import activations, errors, factory, ops, types  # noqa: F401
from .core.errors import (
    IndexOutOfRangeError,
    MiniDLError,
    NumericDegeneracyError,
    ShapeMismatchError,
    StatefulnessError,
)
from .core.layers import DenseLayer
from .core.ndarray import NDArray
from .training.network import Network
from .training.optim import AdamOptimizer
from .training.pipelines import build_network, load_preset, presets, run_pipeline

__all__ = [
    "AdamOptimizer",
    "DenseLayer",
    "IndexOutOfRangeError",
    "MiniDLError",
    "NDArray",
    "Network",
    "NumericDegeneracyError",
    "ShapeMismatchError",
    "StatefulnessError",
    "activations",
    "build_network",
    "errors",
    "factory",
    "load_preset",
    "ops",
    "presets",
    "run_pipeline",
    "types",
]
