import json
from pathlib import Path

import pytest

from minidl.data import get_dataset
from minidl.training import pipelines


def _fast(config, run_dir: Path, epochs: int = 10):
    config["train"]["epochs"] = epochs
    config["train"]["run_dir"] = str(run_dir)
    config["train"]["verbose"] = False
    return config


def test_presets_include_builtins_and_files():
    names = set(pipelines.presets())
    assert {"xor-demo", "xor-hidden", "and-gate", "blobs-small", "or-gate"} <= names


def test_xor_demo_preset_matches_the_classic_topology():
    config = pipelines.load_preset("xor-demo")
    types = [layer["type"] for layer in config["model"]["layers"]]
    assert types == ["dense", "dense", "relu", "sigmoid"]
    assert config["train"]["lr"] == 0.001
    assert config["train"]["epochs"] == 100


def test_load_preset_returns_independent_copies():
    first = pipelines.load_preset("and-gate")
    first["train"]["epochs"] = 1
    assert pipelines.load_preset("and-gate")["train"]["epochs"] == 500


def test_unknown_preset_raises():
    with pytest.raises(KeyError):
        pipelines.load_preset("missing")


def test_run_pipeline_writes_all_artifacts(tmp_path):
    config = _fast(pipelines.load_preset("xor-demo"), tmp_path / "run")
    result = pipelines.run_pipeline(config)

    run_dir = tmp_path / "run"
    for name in [
        "metrics.jsonl",
        "metrics.csv",
        "manifest.json",
        "summary.json",
        "config.json",
        "predictions.json",
    ]:
        assert (run_dir / name).exists(), name
    assert not (run_dir / "loss.png").exists()

    assert result.epochs == 10
    records = Path(result.metrics_path).read_text().splitlines()
    assert len(records) == 10
    assert json.loads(records[-1])["loss"] == pytest.approx(result.final_loss)

    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["dataset"]["name"] == "xor"
    assert manifest["network"]["total_parameters"] == 17

    predictions = json.loads((run_dir / "predictions.json").read_text())
    assert len(predictions["predictions"]) == 4


def test_verbose_run_prints_banner(tmp_path, capsys):
    config = _fast(pipelines.load_preset("and-gate"), tmp_path / "run", epochs=20)
    config["train"]["verbose"] = True
    config["train"]["log_every"] = 10
    pipelines.run_pipeline(config)
    out = capsys.readouterr().out
    assert "=== minidl run ===" in out
    assert "Network summary" in out
    assert "Epoch 20/20 - Loss: " in out


def test_enable_plots_writes_loss_curve(tmp_path):
    pytest.importorskip("matplotlib")
    config = _fast(pipelines.load_preset("and-gate"), tmp_path / "run")
    config["train"]["enable_plots"] = True
    pipelines.run_pipeline(config)
    assert (tmp_path / "run" / "loss.png").exists()


def test_build_network_from_layer_specs():
    net = pipelines.build_network(
        {"layers": [{"type": "dense", "in": 3, "out": 2, "bias": False}, {"type": "sigmoid"}]},
        {"lr": 0.1, "seed": 0, "optimizer": "sgd", "loss": "mse"},
    )
    assert net.parameter_count() == 6
    assert net.loss_name == "mse"
    assert net.learning_rate == 0.1


def test_build_network_rejects_inconsistent_widths():
    with pytest.raises(ValueError):
        pipelines.build_network(
            {
                "layers": [
                    {"type": "dense", "in": 2, "out": 3},
                    {"type": "dense", "in": 4, "out": 1},
                ]
            }
        )
    with pytest.raises(ValueError):
        pipelines.build_network({"layers": []})
    with pytest.raises(KeyError):
        pipelines.build_network({"layers": [{"type": "dense", "in": 2}]})
    with pytest.raises(KeyError):
        pipelines.build_network(
            {"layers": [{"type": "dense", "in": 2, "out": 1}, {"type": "tanh"}]}
        )


def test_unknown_train_options_warn():
    with pytest.warns(UserWarning, match="batch_size"):
        pipelines.build_network(
            {"layers": [{"type": "dense", "in": 2, "out": 1}]}, {"batch_size": 4}
        )


def test_dataset_width_mismatch_raises(tmp_path):
    config = _fast(pipelines.load_preset("xor-demo"), tmp_path / "run")
    config["data"] = {"name": "blobs", "options": {"n_points": 8, "d_in": 3}}
    with pytest.raises(ValueError):
        pipelines.run_pipeline(config)


def test_missing_sections_raise():
    with pytest.raises(KeyError):
        pipelines.run_pipeline({"data": {"name": "xor"}, "model": {}})


def test_yaml_config_files_are_read(tmp_path):
    yaml = pytest.importorskip("yaml")
    path = tmp_path / "override.yaml"
    path.write_text(yaml.safe_dump({"train": {"epochs": 3}}))
    assert pipelines.read_config_file(path) == {"train": {"epochs": 3}}
    with pytest.raises(ValueError):
        pipelines.read_config_file(tmp_path / "override.toml")


def test_xor_demo_preset_trains_with_its_shipped_seed():
    config = pipelines.load_preset("xor-demo")
    dataset = get_dataset(config["data"]["name"])
    net = pipelines.build_network(config["model"], config["train"])
    history = net.train(
        dataset.inputs, dataset.targets, epochs=config["train"]["epochs"], verbose=False
    )
    assert len(history) == 100
    assert history[-1] < history[0]
