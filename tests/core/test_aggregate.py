"""Tests for aggregation, field statistics and pagination."""

from __future__ import annotations

import pytest

from data_explorer.core.query import aggregate, field_stats, group_key, paginate


class TestAggregate:
    def test_sum_by_region_sorted_descending(self, sales_records):
        results = aggregate(sales_records, "region", "revenue", "sum")
        assert results == [
            {"group": "East", "value": 13500.0},
            {"group": "South", "value": 12600.0},
            {"group": "North", "value": 11700.0},
            {"group": "West", "value": 8700.0},
        ]

    def test_count_partitions_records(self, sales_records):
        results = aggregate(sales_records, "region", "units", "count")
        assert sum(r["value"] for r in results) == len(sales_records)
        # ties keep first-encountered group order
        assert results == [
            {"group": "North", "value": 9.0},
            {"group": "South", "value": 9.0},
            {"group": "East", "value": 9.0},
            {"group": "West", "value": 3.0},
        ]

    @pytest.mark.parametrize(
        "operation,expected",
        [
            ("avg", {"West": 29.0, "East": 15.0, "South": 14.0, "North": 13.0}),
            ("min", {"West": 28.0, "East": 3.0, "South": 2.0, "North": 1.0}),
            ("max", {"West": 30.0, "East": 27.0, "South": 26.0, "North": 25.0}),
        ],
    )
    def test_operations(self, sales_records, operation, expected):
        results = aggregate(sales_records, "region", "units", operation)
        assert {r["group"]: r["value"] for r in results} == expected
        assert [r["group"] for r in results] == ["West", "East", "South", "North"]

    def test_missing_group_and_non_numeric_metric(self):
        records = [{"g": None, "v": 1}, {"v": 2}, {"g": "a", "v": "bad"}]
        assert aggregate(records, "g", "v", "sum") == [
            {"group": "null", "value": 3.0},
            {"group": "a", "value": 0.0},
        ]

    def test_unknown_operation_yields_zero(self, sales_records):
        results = aggregate(sales_records, "region", "units", "median")
        assert [r["value"] for r in results] == [0.0, 0.0, 0.0, 0.0]
        assert [r["group"] for r in results] == ["North", "South", "East", "West"]

    def test_empty_records(self):
        assert aggregate([], "region", "units", "sum") == []

    def test_avg_rounds_to_two_decimals(self):
        records = [{"g": "x", "v": 1}, {"g": "x", "v": 1}, {"g": "x", "v": 2}]
        assert aggregate(records, "g", "v", "avg") == [{"group": "x", "value": 1.33}]

    @pytest.mark.parametrize(
        "value,expected",
        [(None, "null"), (3.0, "3"), (2.5, "2.5"), (True, "true"), ("North", "North"), (7, "7")],
    )
    def test_group_key(self, value, expected):
        assert group_key(value) == expected


class TestFieldStats:
    def test_number_stats(self, sales_records):
        assert field_stats(sales_records, "revenue", "number") == {
            "min": 100,
            "max": 3000,
            "avg": 1550.0,
        }

    def test_number_stats_skip_null_and_missing(self, movies_dataset):
        stats = field_stats(movies_dataset.records, "rating", "number")
        assert stats == {"min": 7.9, "max": 8.3, "avg": 8.1}

    def test_number_stats_without_numeric_values(self):
        assert field_stats([{"x": "a"}, {"x": None}, {}], "x", "number") is None
        assert field_stats([], "x", "number") is None

    def test_string_stats(self, sales_records):
        assert field_stats(sales_records, "region", "string") == {
            "uniqueCount": 4,
            "values": ["East", "North", "South", "West"],
        }

    def test_string_stats_exclude_null(self, movies_dataset):
        stats = field_stats(movies_dataset.records, "director", "string")
        assert stats["uniqueCount"] == 3
        assert None not in stats["values"]

    def test_string_values_capped_at_fifty(self):
        records = [{"code": f"c{i:03d}"} for i in range(80)]
        stats = field_stats(records, "code", "string")
        assert stats["uniqueCount"] == 80
        assert len(stats["values"]) == 50
        assert stats["values"][0] == "c000"

    def test_unknown_type(self, sales_records):
        assert field_stats(sales_records, "region", "date") == {}


class TestPaginate:
    def test_first_page(self, sales_records):
        page = paginate(sales_records, offset=0, limit=10)
        assert [r["id"] for r in page.items] == list(range(1, 11))
        assert page.total_count == 30
        assert page.has_more is True

    def test_last_page_has_no_more(self, sales_records):
        page = paginate(sales_records, offset=20, limit=10)
        assert len(page.items) == 10
        assert page.has_more is False

    def test_partial_and_past_end(self, sales_records):
        assert len(paginate(sales_records, offset=25, limit=10).items) == 5
        page = paginate(sales_records, offset=40, limit=10)
        assert page.items == []
        assert page.total_count == 30
        assert page.has_more is False

    def test_pages_partition_the_result(self, sales_records):
        seen = []
        for offset in range(0, 30, 7):
            seen.extend(paginate(sales_records, offset=offset, limit=7).items)
        assert seen == sales_records

    def test_defaults_and_clamping(self, sales_records):
        default = paginate(sales_records, offset=None, limit=None)
        assert (default.offset, default.limit) == (0, 100)
        assert len(default.items) == 30

        negative = paginate(sales_records, offset=0, limit=-1)
        assert (negative.offset, negative.limit) == (0, 0)
        assert negative.items == []
        assert negative.has_more is True

    @pytest.mark.parametrize("offset", [-5, "abc", [1]])
    def test_out_of_range_offset_is_empty_page(self, sales_records, offset):
        page = paginate(sales_records, offset=offset, limit=10)
        assert page.items == []
        assert page.total_count == 30
        assert page.limit == 10

    def test_negative_offset_is_reported_as_requested(self, sales_records):
        assert paginate(sales_records, offset=-5, limit=10).to_payload()["offset"] == -5
        assert paginate(sales_records, offset="abc", limit=10).offset == 0

    def test_invalid_limit_is_empty_page(self, sales_records):
        page = paginate(sales_records, offset=0, limit="many")
        assert page.items == []
        assert page.limit == 0

    def test_payload_shape(self, sales_records):
        payload = paginate(sales_records, offset=28, limit=5).to_payload()
        assert payload == {
            "data": sales_records[28:],
            "totalCount": 30,
            "offset": 28,
            "limit": 5,
            "hasMore": False,
        }
