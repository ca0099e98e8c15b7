import pytest

from minidl.core.errors import MiniDLError, StatefulnessError
from minidl.core.factory import tensor
from minidl.training.network import Network, NetworkState

X = tensor([[0.0, 1.0], [1.0, 0.0]])
Y = tensor([[1.0], [1.0]])


def _network() -> Network:
    return Network(0.01, seed=0).add_dense(2, 2).add_relu().add_dense(2, 1).add_sigmoid()


def test_train_step_walks_the_full_cycle():
    net = _network()
    loss = net.train_step(X, Y)
    assert isinstance(loss, float)
    assert net.state is NetworkState.OPTIMIZED
    assert all(opt.step == 1 for opt in net.optimizers)


def test_forward_may_follow_any_state():
    net = _network()
    net.train_step(X, Y)
    net.forward(X)
    assert net.state is NetworkState.FORWARDED


def test_errors_share_a_common_base():
    net = _network()
    with pytest.raises(MiniDLError):
        net.optimize()
    assert issubclass(StatefulnessError, RuntimeError)


def test_optimiser_steps_once_per_train_step():
    net = _network()
    for _ in range(3):
        net.train_step(X, Y)
    assert [opt.step for opt in net.optimizers] == [3, 3]


def test_gradients_reflect_only_the_latest_batch():
    net = _network()
    net.train_step(X, Y)
    net.zero_grad()
    for layer in net.dense_layers:
        assert all(value == 0.0 for value in layer.weight_grad)
