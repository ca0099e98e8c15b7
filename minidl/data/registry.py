"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

from ..core.ndarray import NDArray
from ..core.types import Batch

TASK_TYPES = frozenset({"binary", "regression"})


@dataclass(frozen=True)
class DatasetSpec:
    """A dataset small enough to be trained on as one full batch.

    Attributes
    ----------
    name:
        Registry identifier.
    inputs:
        ``[size, d_in]`` feature matrix.
    targets:
        ``[size, d_out]`` target matrix.
    task_type:
        ``"binary"`` for 0/1 targets, ``"regression"`` otherwise.
    provenance:
        Free-form metadata recorded in run manifests (generator options, seeds).
    """

    name: str
    inputs: NDArray
    targets: NDArray
    task_type: str = "binary"
    provenance: Dict[str, Any] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return self.inputs.shape[0]

    @property
    def d_in(self) -> int:
        return self.inputs.shape[1]

    @property
    def d_out(self) -> int:
        return self.targets.shape[1]

    def batch(self) -> Batch:
        return Batch(inputs=self.inputs, targets=self.targets)


DatasetFactory = Callable[..., DatasetSpec]

_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(name: str) -> Callable[[DatasetFactory], DatasetFactory]:
    """Register a dataset factory under ``name``::

        @register_dataset("xor")
        def make_xor(**options):
            ...
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[name] = func
        return func

    return _decorator


def get_dataset(name: str, **options: Any) -> DatasetSpec:
    """Return the :class:`DatasetSpec` built by the factory registered as ``name``."""

    if name not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise KeyError(f"Unknown dataset {name!r}. Available datasets: {available}")
    spec = _REGISTRY[name](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if spec.task_type not in TASK_TYPES:
        raise ValueError(f"Invalid task type: {spec.task_type}")
    if spec.inputs.ndim != 2 or spec.targets.ndim != 2:
        raise ValueError(f"Dataset {spec.name!r} must provide rank-2 inputs and targets")
    if spec.inputs.shape[0] != spec.targets.shape[0]:
        raise ValueError(
            f"Dataset {spec.name!r} has {spec.inputs.shape[0]} inputs "
            f"but {spec.targets.shape[0]} targets"
        )


__all__ = [
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
