"""Tests for dataset summaries, schema cards and export rendering."""

from __future__ import annotations

import json

from data_explorer.core.query import describe_dataset, export_records, summarize_dataset, to_csv


def test_summarize_dataset(sales_dataset):
    assert summarize_dataset(sales_dataset) == {
        "name": "sales",
        "description": "Sales transactions",
        "recordCount": 30,
        "columns": ["id", "region", "product", "units", "revenue"],
    }


def test_describe_dataset(movies_dataset):
    card = describe_dataset(movies_dataset)
    assert card["name"] == "movies"
    assert card["recordCount"] == 4
    assert list(card["schema"]) == ["title", "director", "year", "rating"]
    assert card["schema"]["year"] == {
        "type": "number",
        "stats": {"min": 1982, "max": 2016, "avg": 1998.5},
    }
    assert card["schema"]["title"]["type"] == "string"
    assert card["schema"]["title"]["stats"]["uniqueCount"] == 4
    # the card must be JSON-serializable as-is
    json.dumps(card)


def test_to_csv_quotes_delimiters_and_quotes(movies_dataset):
    content = to_csv(movies_dataset.columns, movies_dataset.records)
    lines = content.split("\n")
    assert lines[0] == "title,director,year,rating"
    assert lines[1] == 'Arrival,"Villeneuve, Denis",2016,7.9'
    assert lines[3] == '"Say ""Hi""",,2001,'
    assert lines[4] == 'Blade Runner,"Scott, Ridley",1982,'
    assert len(lines) == 5


def test_to_csv_renders_integral_floats_and_bools():
    content = to_csv(["a", "b"], [{"a": 3.0, "b": True}])
    assert content == "a,b\n3,true"


def test_export_csv(movies_dataset):
    result = export_records(movies_dataset, movies_dataset.records[:2], "CSV")
    assert result["format"] == "csv"
    assert result["recordCount"] == 2
    assert result["content"].startswith("title,director,year,rating\n")


def test_export_json_and_fallback(sales_dataset):
    records = sales_dataset.records[:3]
    as_json = export_records(sales_dataset, records, "json")
    assert as_json["format"] == "json"
    assert json.loads(as_json["content"]) == [dict(r) for r in records]

    fallback = export_records(sales_dataset, records, "xml")
    assert fallback["format"] == "json"
    assert fallback["content"] == as_json["content"]
