import math

import numpy as np
import pytest

from minidl.core.errors import ShapeMismatchError
from minidl.core.factory import tensor
from minidl.training.losses import REGISTRY, BinaryCrossEntropy, MeanSquaredError


def test_bce_at_one_half_is_log_two():
    loss = BinaryCrossEntropy.forward(tensor([[0.5]]), tensor([[1.0]]))
    assert loss.shape == (1, 1)
    assert loss[0] == pytest.approx(math.log(2.0), abs=1e-6)


def test_bce_gradient_matches_closed_form():
    grad = BinaryCrossEntropy.backward(tensor([[0.25]]), tensor([[1.0]]))
    assert grad[0] == pytest.approx((0.25 - 1.0) / (0.25 * 0.75))


def test_bce_clamps_saturated_predictions():
    y_pred = tensor([[0.0], [1.0]])
    y_true = tensor([[1.0], [0.0]])
    loss = BinaryCrossEntropy.forward(y_pred, y_true).to_numpy()
    grad = BinaryCrossEntropy.backward(y_pred, y_true).to_numpy()
    assert np.isfinite(loss).all()
    assert np.isfinite(grad).all()
    assert loss[0, 0] == pytest.approx(-math.log(BinaryCrossEntropy.EPS), rel=1e-6)


def test_bce_requires_matching_shapes():
    with pytest.raises(ShapeMismatchError):
        BinaryCrossEntropy.forward(tensor([[0.5, 0.5]]), tensor([[1.0]]))
    with pytest.raises(ShapeMismatchError):
        BinaryCrossEntropy.backward(tensor([[0.5]]), tensor([1.0]))


def test_mse():
    y_pred = tensor([[1.0], [3.0]])
    y_true = tensor([[0.0], [1.0]])
    assert MeanSquaredError.forward(y_pred, y_true).tolist() == [[1.0], [4.0]]
    assert MeanSquaredError.backward(y_pred, y_true).tolist() == [[2.0], [4.0]]


def test_registry_entries_reduce_to_a_mean():
    bce = REGISTRY.get("bce")
    value, grad = bce(tensor([[0.5], [0.5]]), tensor([[1.0], [0.0]]))
    assert value == pytest.approx(math.log(2.0), abs=1e-6)
    assert grad.shape == (2, 1)
    assert REGISTRY.get("mse").mean(tensor([1.0, 3.0]), tensor([0.0, 1.0])) == 2.5
    assert list(REGISTRY.names()) == ["bce", "mse"]
    with pytest.raises(KeyError):
        REGISTRY.get("hinge")


def test_bce_gradient_at_one_half():
    grad = BinaryCrossEntropy.backward(tensor([0.5]), tensor([1.0]))
    assert grad[0] == pytest.approx(-2.0)
