from __future__ import annotations

from typing import List, Mapping

import pytest

from minidl.core.factory import tensor
from minidl.data import get_dataset
from minidl.training.network import Network

XOR_X = tensor([[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [1.0, 1.0]])
XOR_Y = tensor([[0.0], [1.0], [1.0], [0.0]])


class _Capture:
    def __init__(self) -> None:
        self.history: List[tuple[int, Mapping[str, float]]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.history.append((epoch, dict(metrics)))


def _small_network(**kwargs) -> Network:
    net = Network(0.05, seed=3, **kwargs)
    return net.add_dense(2, 4).add_relu().add_dense(4, 1).add_sigmoid()


def test_callbacks_receive_every_epoch():
    capture = _Capture()
    calls: list[int] = []
    net = _small_network()
    history = net.train(
        XOR_X,
        XOR_Y,
        epochs=7,
        verbose=False,
        callbacks=[capture, lambda epoch, metrics: calls.append(epoch)],
    )
    assert [epoch for epoch, _ in capture.history] == list(range(1, 8))
    assert [metrics["loss"] for _, metrics in capture.history] == history
    assert calls == list(range(1, 8))


def test_verbose_training_prints_every_log_interval(capsys):
    net = _small_network(log_every=5)
    net.train(XOR_X, XOR_Y, epochs=12, verbose=True)
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("Epoch 5/12 - Loss: ")
    assert lines[1].startswith("Epoch 10/12 - Loss: ")


def test_quiet_training_prints_nothing(capsys):
    _small_network().train(XOR_X, XOR_Y, epochs=3, verbose=False)
    assert capsys.readouterr().out == ""


def test_zero_epochs_returns_empty_history():
    assert _small_network().train(XOR_X, XOR_Y, epochs=0, verbose=False) == []
    with pytest.raises(ValueError):
        _small_network().train(XOR_X, XOR_Y, epochs=-1, verbose=False)


def test_logistic_unit_learns_and_gate():
    data = get_dataset("and")
    net = Network(0.1, seed=1, init="xavier_uniform").add_dense(2, 1).add_sigmoid()
    history = net.train(data.inputs, data.targets, epochs=400, verbose=False)
    assert history[-1] < history[0]
    predictions = [1.0 if value > 0.5 else 0.0 for value in net.predict(data.inputs)]
    assert predictions == list(data.targets)


def test_hidden_relu_network_separates_blobs():
    data = get_dataset("blobs", n_points=64, separation=3.0, seed=0)
    net = Network(0.01, seed=7).add_dense(2, 8).add_relu().add_dense(8, 1).add_sigmoid()
    history = net.train(data.inputs, data.targets, epochs=200, verbose=False)
    assert history[-1] < history[0]


def test_sgd_training_reduces_loss():
    net = Network(0.5, optimizer="sgd", loss="mse", seed=1).add_dense(2, 1).add_sigmoid()
    data = get_dataset("or")
    history = net.train(data.inputs, data.targets, epochs=200, verbose=False)
    assert history[-1] < history[0]
