"""Datasets for minidl."""

from . import datasets  # noqa: F401  (registers the built-in datasets)
from .registry import DatasetSpec, available_datasets, get_dataset, register_dataset

__all__ = ["DatasetSpec", "available_datasets", "get_dataset", "register_dataset"]
