import csv
import json

import pytest

from minidl.reporting import CsvSink, JsonlSink, PlotAdapter, compute_auc, write_manifest
from minidl.reporting.summary import write_summary


def test_jsonl_sink_writes_one_record_per_epoch(tmp_path):
    path = tmp_path / "metrics.jsonl"
    sink = JsonlSink(path, seed=3, sha="abc")
    sink.on_epoch(1, {"loss": 0.5, "note": "ignored"})
    sink(2, {"loss": 0.25})
    records = [json.loads(line) for line in path.read_text().splitlines()]
    assert records == [
        {"epoch": 1, "split": "train", "seed": 3, "sha": "abc", "loss": 0.5},
        {"epoch": 2, "split": "train", "seed": 3, "sha": "abc", "loss": 0.25},
    ]


def test_jsonl_sink_truncates_existing_file(tmp_path):
    path = tmp_path / "metrics.jsonl"
    path.write_text("stale\n")
    JsonlSink(path, sha="abc")
    assert path.read_text() == ""


def test_csv_sink_writes_a_single_header(tmp_path):
    path = tmp_path / "metrics.csv"
    sink = CsvSink(path)
    sink.on_epoch(1, {"loss": 1.0})
    sink.on_epoch(2, {"loss": 0.5})
    with path.open() as handle:
        rows = list(csv.DictReader(handle))
    assert [row["epoch"] for row in rows] == ["1", "2"]
    assert float(rows[1]["loss"]) == 0.5


def test_manifest_records_config_and_dataset(tmp_path):
    path = write_manifest(
        tmp_path / "out" / "manifest.json",
        config={"train": {"epochs": 3}},
        dataset_provenance={"name": "xor"},
    )
    manifest = json.loads((tmp_path / "out" / "manifest.json").read_text())
    assert path.endswith("manifest.json")
    assert manifest["config"] == {"train": {"epochs": 3}}
    assert manifest["dataset"] == {"name": "xor"}
    assert {"git_sha", "generated_at", "environment"} <= set(manifest)


def test_compute_auc():
    assert compute_auc([]) == 0.0
    assert compute_auc([1.0, 1.0, 1.0]) == pytest.approx(2.0)


def test_summary_statistics(tmp_path):
    metrics = tmp_path / "metrics.jsonl"
    sink = JsonlSink(metrics, seed=0, sha="abc")
    for epoch, loss in enumerate([4.0, 2.0, 1.0, 1.0], start=1):
        sink.on_epoch(epoch, {"loss": loss})
    out = write_summary(metrics, tmp_path / "summary.json", tail=2)
    summary = json.loads((tmp_path / "summary.json").read_text())
    assert out.endswith("summary.json")
    assert summary["records"] == 4
    assert summary["tail_window"] == 2
    assert summary["metrics"]["loss"] == {
        "min": 1.0,
        "max": 4.0,
        "mean": 2.0,
        "last": 1.0,
        "tail_auc": 1.0,
    }


def test_summary_of_missing_metrics_is_empty(tmp_path):
    write_summary(tmp_path / "absent.jsonl", tmp_path / "summary.json")
    summary = json.loads((tmp_path / "summary.json").read_text())
    assert summary["records"] == 0
    assert summary["metrics"] == {}


def test_plot_adapter_is_inert_when_disabled(tmp_path):
    adapter = PlotAdapter(tmp_path / "plots", enable_plots=False)
    adapter.on_epoch(1, {"loss": 1.0})
    assert adapter.close() is None
    assert not (tmp_path / "plots").exists()


def test_plot_adapter_writes_loss_curve(tmp_path):
    pytest.importorskip("matplotlib")
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    for epoch, loss in enumerate([1.0, 0.5, 0.25], start=1):
        adapter.on_epoch(epoch, {"loss": loss})
    assert adapter.history == [(1, 1.0), (2, 0.5), (3, 0.25)]
    path = adapter.close()
    assert path is not None
    assert (tmp_path / "loss.png").exists()
