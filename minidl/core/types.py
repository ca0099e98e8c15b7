"""Core typing contracts for minidl."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Sequence, Tuple, Union

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .ndarray import NDArray

Array = np.ndarray
Shape = Tuple[int, ...]
Scalar = Union[int, float]
ShapeLike = Union[Sequence[int], int]


def normalize_shape(shape: ShapeLike) -> Shape:
    """Return ``shape`` as a tuple of non-negative ints."""

    if isinstance(shape, (int, np.integer)):
        dims: Tuple[int, ...] = (int(shape),)
    else:
        dims = tuple(int(d) for d in shape)
    for dim in dims:
        if dim < 0:
            raise ValueError(f"Shape dimensions must be non-negative, got {list(dims)}")
    return dims


def is_scalar(value: object) -> bool:
    """Return ``True`` for real numbers accepted as scalar operands."""

    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(
        value, bool
    )


@dataclass(frozen=True)
class Batch:
    """A full batch of inputs and targets."""

    inputs: "NDArray"
    targets: "NDArray"


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`minidl.training.pipelines.run_pipeline`."""

    epochs: int
    final_loss: float
    metrics_path: str
    manifest_path: str
    summary_path: str = ""


@dataclass(frozen=True)
class StageSummary:
    """One row of :class:`NetworkSummary`."""

    name: str
    in_features: int | None
    out_features: int | None
    parameters: int = 0


@dataclass(frozen=True)
class NetworkSummary:
    """Structural description of a :class:`~minidl.training.network.Network`."""

    stages: List[StageSummary] = field(default_factory=list)
    dense_layers: int = 0
    total_parameters: int = 0

    @property
    def stage_count(self) -> int:
        return len(self.stages)

    def as_dict(self) -> Dict[str, object]:
        return {
            "stage_count": self.stage_count,
            "dense_layers": self.dense_layers,
            "total_parameters": self.total_parameters,
            "stages": [
                {
                    "name": stage.name,
                    "in_features": stage.in_features,
                    "out_features": stage.out_features,
                    "parameters": stage.parameters,
                }
                for stage in self.stages
            ],
        }

    def format(self) -> str:
        lines = [
            "======== Network summary ========",
            f"Total stages     : {self.stage_count}",
            f"Dense layers     : {self.dense_layers}",
        ]
        for idx, stage in enumerate(self.stages, start=1):
            if stage.parameters:
                shape = f"({stage.in_features} -> {stage.out_features})"
                lines.append(f"Stage {idx}: {stage.name}{shape}, {stage.parameters} params")
            elif stage.out_features is not None:
                lines.append(f"Stage {idx}: {stage.name} [{stage.out_features}]")
            else:
                lines.append(f"Stage {idx}: {stage.name}")
        lines.append(f"Total parameters : {self.total_parameters}")
        lines.append("=================================")
        return "\n".join(lines)


__all__ = [
    "Array",
    "Batch",
    "NetworkSummary",
    "RunResult",
    "Scalar",
    "Shape",
    "ShapeLike",
    "StageSummary",
    "is_scalar",
    "normalize_shape",
]
