"""In-memory dataset store.

The store is populated once at startup and then only read. Loading accepts
JSON files in the ``{name, description, schema, data}`` shape and plain CSV
files, whose schema is inferred from pandas dtypes.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List

import pandas as pd

from .enums import FieldType
from .errors import DatasetNotFound
from .models import Dataset

logger = logging.getLogger(__name__)


class DatasetStore:
    """Immutable collection of datasets keyed by unique name."""

    def __init__(self, datasets: Dict[str, Dataset]) -> None:
        self._datasets: Dict[str, Dataset] = dict(datasets)

    @classmethod
    def from_datasets(cls, datasets: Iterable[Dataset]) -> "DatasetStore":
        """Build a store, rejecting duplicate dataset names."""
        by_name: Dict[str, Dataset] = {}
        for ds in datasets:
            if ds.name in by_name:
                raise ValueError(f"Duplicate dataset name: {ds.name}")
            by_name[ds.name] = ds
        return cls(by_name)

    def get(self, name: str) -> Dataset:
        try:
            return self._datasets[name]
        except (KeyError, TypeError):
            raise DatasetNotFound(str(name)) from None

    def names(self) -> List[str]:
        return list(self._datasets.keys())

    def __iter__(self) -> Iterator[Dataset]:
        return iter(self._datasets.values())

    def __len__(self) -> int:
        return len(self._datasets)

    def __contains__(self, name: object) -> bool:
        return name in self._datasets


def _infer_schema(df: pd.DataFrame) -> Dict[str, str]:
    schema: Dict[str, str] = {}
    for col, dtype in df.dtypes.items():
        if pd.api.types.is_numeric_dtype(dtype) and not pd.api.types.is_bool_dtype(dtype):
            schema[str(col)] = FieldType.NUMBER.value
        else:
            schema[str(col)] = FieldType.STRING.value
    return schema


def _load_csv(path: Path) -> Dataset:
    df = pd.read_csv(path)
    schema = _infer_schema(df)
    # NaN cells become None so records stay JSON-serializable
    df = df.astype(object).where(pd.notna(df), None)
    return Dataset.build(
        name=path.stem,
        description=f"Loaded from {path.name}",
        schema=schema,
        records=df.to_dict(orient="records"),
    )


def _load_json(path: Path) -> Dataset:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, dict):
        raise ValueError(f"Dataset file must contain a JSON object: {path}")
    records = payload.get("data") or []
    if not isinstance(records, list):
        raise ValueError(f"Dataset 'data' must be a list: {path}")
    return Dataset.build(
        name=payload.get("name") or path.stem,
        description=payload.get("description", ""),
        schema=payload.get("schema") or {},
        records=[r for r in records if isinstance(r, dict)],
    )


def load_dataset_file(path: Path) -> Dataset:
    """Load one dataset file (``.json`` or ``.csv``)."""
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return _load_csv(path)
    if suffix == ".json":
        return _load_json(path)
    raise ValueError(f"Unsupported dataset file type: {path.name}")


def load_datasets(paths: Iterable[Path], *, strict: bool = False) -> DatasetStore:
    """Load dataset files into a store.

    Files that fail to load are logged and skipped unless ``strict`` is set.
    Duplicate names always raise.
    """
    loaded: List[Dataset] = []
    for path in paths:
        try:
            ds = load_dataset_file(Path(path))
        except (OSError, ValueError) as e:
            if strict:
                raise
            logger.error("Failed to load %s: %s", path, e)
            continue
        logger.info("Loaded dataset: %s (%d records)", ds.name, ds.record_count)
        loaded.append(ds)
    return DatasetStore.from_datasets(loaded)


def discover_dataset_files(data_dir: Path) -> List[Path]:
    """Return JSON and CSV files directly under ``data_dir``, sorted by name."""
    if not data_dir.exists():
        logger.warning("Data directory does not exist: %s", data_dir)
        return []
    return sorted(
        p for p in data_dir.iterdir() if p.is_file() and p.suffix.lower() in {".json", ".csv"}
    )


__all__ = [
    "DatasetStore",
    "load_dataset_file",
    "load_datasets",
    "discover_dataset_files",
]
