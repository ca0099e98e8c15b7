"""Pipeline assembly: presets, network construction and full training runs."""

from __future__ import annotations

import json
import math
import warnings
from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, List, Mapping, Sequence

from ..core.types import NetworkSummary, RunResult
from ..data import registry
from ..reporting.artifacts import write_json, write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .network import Network

_XOR_HIDDEN_LAYERS: List[Dict[str, Any]] = [
    {"type": "dense", "in": 2, "out": 4, "bias": True},
    {"type": "relu"},
    {"type": "dense", "in": 4, "out": 1, "bias": True},
    {"type": "sigmoid"},
]

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor-demo": {
        "data": {"name": "xor", "options": {}},
        "model": {
            "layers": [
                {"type": "dense", "in": 2, "out": 4, "bias": True},
                {"type": "dense", "in": 4, "out": 1, "bias": True},
                {"type": "relu"},
                {"type": "sigmoid"},
            ],
            "init": "kaiming_normal",
        },
        "train": {
            "epochs": 100,
            "lr": 0.001,
            "optimizer": "adam",
            "loss": "bce",
            "seed": 1,
            "run_dir": "runs/xor-demo",
            "verbose": True,
            "log_every": 10,
            "enable_plots": False,
        },
    },
    "xor-hidden": {
        "data": {"name": "xor", "options": {}},
        "model": {"layers": _XOR_HIDDEN_LAYERS, "init": "kaiming_normal"},
        "train": {
            "epochs": 2000,
            "lr": 0.05,
            "optimizer": "adam",
            "loss": "bce",
            "seed": 3,
            "run_dir": "runs/xor-hidden",
            "verbose": True,
            "log_every": 200,
            "enable_plots": False,
        },
    },
    "and-gate": {
        "data": {"name": "and", "options": {}},
        "model": {
            "layers": [{"type": "dense", "in": 2, "out": 1}, {"type": "sigmoid"}],
            "init": "xavier_uniform",
        },
        "train": {
            "epochs": 500,
            "lr": 0.05,
            "optimizer": "adam",
            "loss": "bce",
            "seed": 1,
            "run_dir": "runs/and-gate",
            "verbose": True,
            "log_every": 50,
            "enable_plots": False,
        },
    },
    "blobs-small": {
        "data": {"name": "blobs", "options": {"n_points": 64, "separation": 3.0, "seed": 0}},
        "model": {
            "layers": [
                {"type": "dense", "in": 2, "out": 8},
                {"type": "relu"},
                {"type": "dense", "in": 8, "out": 1},
                {"type": "sigmoid"},
            ],
            "init": "kaiming_normal",
        },
        "train": {
            "epochs": 200,
            "lr": 0.01,
            "optimizer": "adam",
            "loss": "bce",
            "seed": 7,
            "run_dir": "runs/blobs-small",
            "verbose": True,
            "log_every": 20,
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None

_REQUIRED_SECTIONS = frozenset({"data", "model", "train"})
_TRAIN_KEYS = frozenset(
    {
        "epochs",
        "lr",
        "optimizer",
        "loss",
        "seed",
        "run_dir",
        "verbose",
        "log_every",
        "enable_plots",
        "check_finite",
        "summary_tail",
    }
)


def read_config_file(path: str | Path) -> Mapping[str, object]:
    """Decode a JSON or YAML file into a mapping.

    PyYAML is only imported for ``.yaml``/``.yml`` files.
    """

    path = Path(path)
    suffix = path.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise ValueError(f"Unsupported configuration file type: {path.suffix}")
    text = path.read_text()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:
            raise RuntimeError("PyYAML is required to read YAML configuration files") from exc
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text or "{}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Configuration {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                missing = _REQUIRED_SECTIONS - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(
                        f"Preset {file.name} is missing required sections: {missing_str}"
                    )
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    """Every available preset; files in ``configs/presets`` override built-ins."""

    combined: Dict[str, Mapping[str, object]] = {
        name: deepcopy(cfg) for name, cfg in _PRESETS.items()
    }
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_presets = _file_presets()
    if name in file_presets:
        return file_presets[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        available = ", ".join(sorted(presets()))
        raise KeyError(f"Unknown preset {name!r}. Available presets: {available}") from exc


# ----------------------------------------------------------------------
# Network construction


def build_network(
    model_cfg: Mapping[str, object], train_cfg: Mapping[str, object] | None = None
) -> Network:
    """Instantiate a :class:`Network` from the ``model`` and ``train`` sections."""

    train_cfg = train_cfg or {}
    unknown = sorted(set(train_cfg) - _TRAIN_KEYS)
    if unknown:
        warnings.warn(
            f"Ignoring unknown train options: {', '.join(unknown)}", UserWarning, stacklevel=2
        )
    layers = model_cfg.get("layers")
    if not isinstance(layers, Sequence) or isinstance(layers, (str, bytes)) or not layers:
        raise ValueError("model.layers must be a non-empty list of layer specs")

    seed = train_cfg.get("seed")
    network = Network(
        float(train_cfg.get("lr", 0.001)),
        optimizer=str(train_cfg.get("optimizer", "adam")),
        loss=str(train_cfg.get("loss", "bce")),
        seed=None if seed is None else int(seed),
        init=str(model_cfg.get("init", "kaiming_normal")),
        check_finite=bool(train_cfg.get("check_finite", False)),
        log_every=int(train_cfg.get("log_every", 10)),
    )

    width: int | None = None
    for position, spec in enumerate(layers):
        if not isinstance(spec, Mapping) or "type" not in spec:
            raise ValueError(f"Layer {position} must be a mapping with a 'type' key")
        kind = str(spec["type"]).lower()
        if kind == "dense":
            try:
                d_in, d_out = int(spec["in"]), int(spec["out"])
            except KeyError as exc:
                raise KeyError(f"Dense layer {position} is missing {exc.args[0]!r}") from exc
            if width is not None and d_in != width:
                raise ValueError(
                    f"Dense layer {position} expects {d_in} inputs but receives {width}"
                )
            network.add_dense(d_in, d_out, bool(spec.get("bias", True)))
            width = d_out
        else:
            network.add_activation(kind)
    return network


def _input_width(network: Network) -> int | None:
    layers = network.dense_layers
    return layers[0].in_features if layers else None


def _output_width(network: Network) -> int | None:
    layers = network.dense_layers
    return layers[-1].out_features if layers else None


# ----------------------------------------------------------------------
# Runs


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Train a network on a registered dataset and write the run artifacts."""

    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    if "name" not in data_cfg:
        raise KeyError("data.name is required")
    dataset = registry.get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options") or {}))
    network = build_network(model_cfg, train_cfg)
    if _input_width(network) != dataset.d_in or _output_width(network) != dataset.d_out:
        raise ValueError(
            f"Network maps {_input_width(network)} -> {_output_width(network)} features "
            f"but dataset {dataset.name!r} is {dataset.d_in} -> {dataset.d_out}"
        )

    epochs = int(train_cfg.get("epochs", 100))
    seed = train_cfg.get("seed")
    verbose = bool(train_cfg.get("verbose", True))
    run_dir = Path(str(train_cfg.get("run_dir", f"runs/{dataset.name}")))
    run_dir.mkdir(parents=True, exist_ok=True)

    summary = network.summary()
    if verbose:
        _print_startup_summary(
            dataset_name=dataset.name,
            summary=summary,
            loss=network.loss_name,
            optimizer=network.optimizer_name,
            epochs=epochs,
            learning_rate=network.learning_rate,
        )

    safe_config = json.loads(json.dumps(config))
    write_json(run_dir / "config.json", safe_config)

    metrics_path = run_dir / "metrics.jsonl"
    jsonl = JsonlSink(metrics_path, seed=None if seed is None else int(seed))
    csv_sink = CsvSink(run_dir / "metrics.csv")
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

    batch = dataset.batch()
    history = network.train(
        batch.inputs,
        batch.targets,
        epochs=epochs,
        verbose=verbose,
        callbacks=[jsonl, csv_sink, plots],
    )
    plots.close()

    predictions = network.predict(batch.inputs)
    write_json(
        run_dir / "predictions.json",
        {
            "inputs": batch.inputs.tolist(),
            "targets": batch.targets.tolist(),
            "predictions": predictions.tolist(),
        },
    )

    manifest_path = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        dataset_provenance={"name": dataset.name, **dataset.provenance},
        network=summary.as_dict(),
    )
    summary_path = write_summary(
        metrics_path,
        run_dir / "summary.json",
        tail=int(train_cfg.get("summary_tail", 32)),
    )

    final_loss = history[-1] if history else math.nan
    return RunResult(
        epochs=len(history),
        final_loss=final_loss,
        metrics_path=str(metrics_path),
        manifest_path=manifest_path,
        summary_path=summary_path,
    )


def _print_startup_summary(
    *,
    dataset_name: str,
    summary: NetworkSummary,
    loss: str,
    optimizer: str,
    epochs: int,
    learning_rate: float,
) -> None:
    print("=== minidl run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Loss          : {loss}")
    print(f"Optimizer     : {optimizer} (lr={learning_rate})")
    print(f"Epochs        : {epochs}")
    print(summary.format())


__all__ = ["build_network", "load_preset", "presets", "read_config_file", "run_pipeline"]
