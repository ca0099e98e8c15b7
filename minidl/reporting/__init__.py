"""Reporting utilities for minidl runs."""

from .artifacts import write_json, write_manifest
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .summary import compute_auc, write_summary

__all__ = [
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
    "compute_auc",
    "write_json",
    "write_manifest",
    "write_summary",
]
