"""Shared pytest fixtures: small in-memory datasets and a store holding them."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

import pytest

from data_explorer.core.models import Dataset
from data_explorer.core.store import DatasetStore
from data_explorer.tools.dispatcher import ToolDispatcher

SALES_SCHEMA = {
    "id": "number",
    "region": "string",
    "product": "string",
    "units": "number",
    "revenue": "number",
}

MOVIES_SCHEMA = {
    "title": "string",
    "director": "string",
    "year": "number",
    "rating": "number",
}

WEATHER_SCHEMA = {
    "city": "string",
    "temperature": "number",
}


def _sales_records() -> List[Dict[str, Any]]:
    """30 records: 9 each for North/South/East, then 3 West at the end."""
    regions = ["North", "South", "East"]
    records = []
    for i in range(1, 31):
        region = regions[(i - 1) % 3] if i <= 27 else "West"
        records.append(
            {
                "id": i,
                "region": region,
                "product": "Widget" if i % 2 else "Gadget",
                "units": i,
                "revenue": i * 100,
            }
        )
    return records


@pytest.fixture
def sales_records() -> List[Dict[str, Any]]:
    return _sales_records()


@pytest.fixture
def sales_dataset() -> Dataset:
    return Dataset.build("sales", "Sales transactions", SALES_SCHEMA, _sales_records())


@pytest.fixture
def movies_dataset() -> Dataset:
    return Dataset.build(
        "movies",
        "Movie catalog",
        MOVIES_SCHEMA,
        [
            {"title": "Arrival", "director": "Villeneuve, Denis", "year": 2016, "rating": 7.9},
            {"title": "Heat", "director": "Mann, Michael", "year": 1995, "rating": 8.3},
            {"title": "Say \"Hi\"", "director": None, "year": 2001, "rating": None},
            {"title": "Blade Runner", "director": "Scott, Ridley", "year": 1982},
        ],
    )


@pytest.fixture
def weather_dataset() -> Dataset:
    return Dataset.build(
        "weather",
        "Daily weather",
        WEATHER_SCHEMA,
        [
            {"city": "Austin", "temperature": 31},
            {"city": "Boston", "temperature": 18.5},
        ],
    )


@pytest.fixture
def store(sales_dataset, movies_dataset, weather_dataset) -> DatasetStore:  # pylint: disable=redefined-outer-name
    return DatasetStore.from_datasets([sales_dataset, movies_dataset, weather_dataset])


@pytest.fixture
def dispatcher(store) -> ToolDispatcher:  # pylint: disable=redefined-outer-name
    return ToolDispatcher(store)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """A data directory with one JSON dataset and one CSV dataset."""
    directory = tmp_path / "data"
    directory.mkdir()
    (directory / "sales.json").write_text(
        json.dumps(
            {
                "name": "sales",
                "description": "Sales transactions",
                "schema": SALES_SCHEMA,
                "data": _sales_records(),
            }
        ),
        encoding="utf-8",
    )
    (directory / "cities.csv").write_text(
        "city,population,country\nYerevan,1090000,Armenia\nGyumri,112000,Armenia\nParis,,France\n",
        encoding="utf-8",
    )
    return directory

