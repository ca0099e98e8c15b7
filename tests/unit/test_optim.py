import pytest

from minidl.core.errors import ShapeMismatchError
from minidl.core.factory import full, tensor, zeros
from minidl.training.optim import OPTIMIZERS, AdamOptimizer, SGDOptimizer, make_optimizer


def test_first_adam_step_moves_by_the_learning_rate():
    weight = tensor([[1.0, -1.0]])
    bias = tensor([0.0])
    adam = AdamOptimizer(learning_rate=0.1)
    adam.update(weight, full((1, 2), 1.0), bias, tensor([-3.0]))
    assert weight[0] == pytest.approx(0.9, abs=1e-6)
    assert weight[1] == pytest.approx(-1.1, abs=1e-6)
    assert bias[0] == pytest.approx(0.1, abs=1e-6)
    assert adam.step == 1


def test_moment_buffers_are_allocated_once():
    weight = zeros((2, 2))
    adam = AdamOptimizer()
    adam.update(weight, full((2, 2), 1.0))
    buffer = adam.first_moment_weight
    adam.update(weight, full((2, 2), 1.0))
    assert adam.first_moment_weight is buffer
    assert adam.step == 2


def test_moments_follow_the_exponential_averages():
    weight = zeros((1,))
    adam = AdamOptimizer(beta1=0.5, beta2=0.5)
    adam.update(weight, tensor([2.0]))
    assert adam.first_moment_weight[0] == pytest.approx(1.0)
    assert adam.second_moment_weight[0] == pytest.approx(2.0)


def test_shape_change_after_first_update_raises():
    adam = AdamOptimizer()
    adam.update(zeros((2, 2)), zeros((2, 2)))
    with pytest.raises(ShapeMismatchError):
        adam.update(zeros((3, 2)), zeros((3, 2)))
    with pytest.raises(ShapeMismatchError):
        adam.update(zeros((2, 2)), zeros((2, 2)), zeros((2,)), zeros((2,)))


def test_gradient_must_match_its_parameter():
    adam = AdamOptimizer()
    with pytest.raises(ShapeMismatchError):
        adam.update(zeros((2, 2)), zeros((2, 1)))
    with pytest.raises(ValueError):
        adam.update(zeros((2, 2)), zeros((2, 2)), zeros((2,)), None)


def test_zero_gradient_leaves_parameters_unchanged():
    weight = tensor([0.5, -0.5])
    AdamOptimizer(learning_rate=0.1).update(weight, zeros((2,)))
    assert weight.tolist() == [0.5, -0.5]


def test_sgd_update():
    weight = tensor([1.0])
    bias = tensor([1.0])
    SGDOptimizer(learning_rate=0.5).update(weight, tensor([2.0]), bias, tensor([-1.0]))
    assert weight.tolist() == [0.0]
    assert bias.tolist() == [1.5]


def test_make_optimizer():
    assert set(OPTIMIZERS) == {"adam", "sgd"}
    adam = make_optimizer("Adam", 0.01)
    assert isinstance(adam, AdamOptimizer)
    assert adam.learning_rate == 0.01
    with pytest.raises(ValueError):
        make_optimizer("rmsprop", 0.01)
