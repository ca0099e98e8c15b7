import pytest

from minidl.core.factory import tensor
from minidl.data import DatasetSpec, available_datasets, get_dataset, register_dataset


def test_builtin_datasets_are_registered():
    assert {"xor", "and", "or", "nand", "blobs"} <= set(available_datasets())


@pytest.mark.parametrize(
    "name, targets",
    [
        ("xor", [0.0, 1.0, 1.0, 0.0]),
        ("and", [0.0, 0.0, 0.0, 1.0]),
        ("or", [0.0, 1.0, 1.0, 1.0]),
        ("nand", [1.0, 1.0, 1.0, 0.0]),
    ],
)
def test_logic_gates(name, targets):
    spec = get_dataset(name)
    assert spec.size == 4
    assert (spec.d_in, spec.d_out) == (2, 1)
    assert spec.inputs.tolist() == [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]]
    assert list(spec.targets) == targets
    assert spec.provenance["gate"] == name


def test_blobs_are_seeded_and_balanced():
    first = get_dataset("blobs", n_points=20, seed=4)
    second = get_dataset("blobs", n_points=20, seed=4)
    assert first.inputs == second.inputs
    assert first.inputs.shape == (20, 2)
    assert sum(first.targets) == 10.0
    assert first.provenance["seed"] == 4


def test_unknown_dataset_raises_key_error():
    with pytest.raises(KeyError):
        get_dataset("mnist")


def test_registered_factories_are_validated():
    @register_dataset("broken-fixture")
    def _broken():
        return DatasetSpec(
            name="broken-fixture",
            inputs=tensor([[1.0, 2.0]]),
            targets=tensor([[1.0], [0.0]]),
        )

    with pytest.raises(ValueError):
        get_dataset("broken-fixture")
    batch = get_dataset("xor").batch()
    assert batch.inputs.shape == (4, 2)
