"""Built-in full-batch datasets."""

from __future__ import annotations

import numpy as np

from ..core.factory import tensor, tensor_from
from ..core.ndarray import NDArray
from .registry import DatasetSpec, register_dataset

_GATE_INPUTS = [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]

_GATE_TARGETS = {
    "xor": [0.0, 1.0, 1.0, 0.0],
    "and": [0.0, 0.0, 0.0, 1.0],
    "or": [0.0, 1.0, 1.0, 1.0],
    "nand": [1.0, 1.0, 1.0, 0.0],
}


def logic_gate(name: str) -> DatasetSpec:
    """Truth table of a two-input boolean gate as ``[4, 2]`` inputs, ``[4, 1]`` targets."""

    try:
        targets = _GATE_TARGETS[name]
    except KeyError as exc:
        raise KeyError(f"Unknown logic gate: {name}") from exc
    return DatasetSpec(
        name=name,
        inputs=tensor(_GATE_INPUTS),
        targets=tensor_from((4, 1), targets),
        provenance={"type": "logic_gate", "gate": name},
    )


@register_dataset("xor")
def make_xor() -> DatasetSpec:
    return logic_gate("xor")


@register_dataset("and")
def make_and() -> DatasetSpec:
    return logic_gate("and")


@register_dataset("or")
def make_or() -> DatasetSpec:
    return logic_gate("or")


@register_dataset("nand")
def make_nand() -> DatasetSpec:
    return logic_gate("nand")


@register_dataset("blobs")
def make_blobs(
    n_points: int = 64,
    d_in: int = 2,
    separation: float = 2.0,
    seed: int = 0,
) -> DatasetSpec:
    """Two gaussian clusters centred at ``-separation/2`` and ``+separation/2``."""

    if n_points < 2:
        raise ValueError("blobs needs at least two points")
    rng = np.random.default_rng(seed)
    half = n_points // 2
    low = rng.normal(-separation / 2.0, 1.0, size=(half, d_in))
    high = rng.normal(separation / 2.0, 1.0, size=(n_points - half, d_in))
    inputs = np.vstack([low, high])
    targets = np.concatenate([np.zeros(half), np.ones(n_points - half)]).reshape(-1, 1)
    order = rng.permutation(n_points)
    return DatasetSpec(
        name="blobs",
        inputs=NDArray.from_numpy(inputs[order]),
        targets=NDArray.from_numpy(targets[order]),
        provenance={
            "type": "blobs",
            "n_points": n_points,
            "d_in": d_in,
            "separation": separation,
            "seed": seed,
        },
    )


__all__ = ["logic_gate", "make_and", "make_blobs", "make_nand", "make_or", "make_xor"]
