from datetime import datetime, timedelta

import pytest

from fitfuel_admin.core.filter_sort import (
    apply,
    bucket_bounds,
    field_value,
    local_naive,
    matches,
    sort_records,
)
from fitfuel_admin.data.models import FilterSet, Product, SortSpec

SEARCH_FIELDS = ("name", "description", "tags")


def _products():
    rows = [
        {"id": "a", "name": "Almonds", "price": 10, "category": "Nuts", "tags": ["Protein"]},
        {"id": "b", "name": "banana", "price": 3, "category": "Fruits", "description": "Ripe and sweet"},
        {"id": "c", "name": "Cashews", "price": 10, "category": "Nuts"},
        {"id": "d", "name": "Apple Juice", "price": 4, "category": "Beverages", "tags": ["fresh"]},
        {"id": "e", "name": "Berry Mix", "price": 10, "category": "Mixed Options"},
    ]
    return [Product.from_document(r) for r in rows]


@pytest.mark.parametrize("filters", [
    FilterSet(),
    FilterSet(search="a"),
    FilterSet(search="PROTEIN"),
    FilterSet(equals={"category": "Nuts"}),
    FilterSet(search="sweet", equals={"category": "Fruits"}),
    FilterSet(equals={"category": "Nuts"}, search="zzz"),
])
def test_apply_returns_subset_satisfying_every_filter(filters):
    records = _products()
    result = apply(records, filters, SortSpec(field="price"), SEARCH_FIELDS)

    assert all(r in records for r in result)
    assert all(matches(r, filters, SEARCH_FIELDS) for r in result)
    assert len(result) == sum(matches(r, filters, SEARCH_FIELDS) for r in records)


def test_search_is_case_insensitive_and_covers_list_fields():
    records = _products()

    assert [r.id for r in apply(records, FilterSet(search="protein"), None, SEARCH_FIELDS)] == ["a"]
    assert [r.id for r in apply(records, FilterSet(search="BANANA"), None, SEARCH_FIELDS)] == ["b"]
    assert [r.id for r in apply(records, FilterSet(search="  "), None, SEARCH_FIELDS)] == ["a", "b", "c", "d", "e"]


def test_all_sentinel_disables_equality_filter():
    records = _products()

    for value in ("all", "ALL", "All"):
        assert len(apply(records, FilterSet(equals={"category": value}), None, SEARCH_FIELDS)) == 5


def test_sort_is_stable_in_both_directions():
    records = _products()

    asc = sort_records(records, SortSpec(field="price", direction="asc"))
    desc = sort_records(records, SortSpec(field="price", direction="desc"))

    assert [r.id for r in asc] == ["b", "d", "a", "c", "e"]
    # equal prices keep their input order when descending too
    assert [r.id for r in desc] == ["a", "c", "e", "d", "b"]


def test_string_sort_ignores_case():
    result = sort_records(_products(), SortSpec(field="name"))
    assert [r.name for r in result] == ["Almonds", "Apple Juice", "banana", "Berry Mix", "Cashews"]


def test_missing_values_sort_last():
    records = [{"id": "x", "n": None}, {"id": "y", "n": 2}, {"id": "z", "n": 1}]

    assert [r["id"] for r in sort_records(records, SortSpec(field="n"))] == ["z", "y", "x"]
    assert [r["id"] for r in sort_records(records, SortSpec(field="n", direction="desc"))] == ["y", "z", "x"]


def test_no_sort_keeps_input_order():
    records = _products()
    assert sort_records(records, None) == records


def test_date_buckets(now):
    records = [
        {"id": "today", "created_at": now - timedelta(hours=2)},
        {"id": "yesterday", "created_at": now - timedelta(days=1)},
        {"id": "old", "created_at": now - timedelta(days=8)},
    ]

    def ids(bucket):
        return [r["id"] for r in apply(records, FilterSet(date_bucket=bucket), None, (), now=now)]

    assert ids("today") == ["today"]
    assert ids("yesterday") == ["yesterday"]
    assert ids("week") == ["today", "yesterday"]
    assert ids("all") == ["today", "yesterday", "old"]


def test_records_without_date_fail_a_bucket(now):
    records = [{"id": "x", "created_at": None}]

    assert apply(records, FilterSet(date_bucket="today"), None, (), now=now) == []
    assert len(apply(records, FilterSet(date_bucket="all"), None, (), now=now)) == 1


def test_week_starts_on_sunday():
    sunday = datetime(2024, 5, 12, 8, 30)
    saturday = datetime(2024, 5, 18, 23, 0)

    assert bucket_bounds("week", sunday) == (datetime(2024, 5, 12), None)
    assert bucket_bounds("week", saturday) == (datetime(2024, 5, 12), None)


def test_month_and_yesterday_bounds(now):
    assert bucket_bounds("month", now) == (datetime(2024, 5, 1), None)
    assert bucket_bounds("yesterday", now) == (datetime(2024, 5, 14), datetime(2024, 5, 15))
    assert bucket_bounds("all", now) == (None, None)


def test_unknown_bucket_raises(now):
    with pytest.raises(ValueError):
        bucket_bounds("decade", now)


def test_aware_timestamps_compare_in_local_time(now):
    aware = datetime(2024, 5, 15, 9, 0).astimezone()

    assert local_naive(aware) == datetime(2024, 5, 15, 9, 0)
    assert apply([{"created_at": aware}], FilterSet(date_bucket="today"), None, (), now=now)


def test_field_value_reads_models_extras_and_mappings():
    product = Product.from_document({"id": "p", "name": "Kiwi", "price": 1, "supplier": "Acme"})

    assert field_value(product, "name") == "Kiwi"
    assert field_value(product, "supplier") == "Acme"
    assert field_value(product, "missing") is None
    assert field_value({"name": "x"}, "name") == "x"
