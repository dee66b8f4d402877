import threading
from datetime import datetime

import pytest

from fitfuel_admin.core.aggregates import AggregateDefinition
from fitfuel_admin.core.views import CollectionView
from fitfuel_admin.data.models import Product, SortSpec
from fitfuel_admin.errors import GatewayError, ScreenBusyError


def _view(gateway, **kwargs):
    return CollectionView(
        gateway=gateway,
        collection="products",
        model=Product,
        definition=AggregateDefinition({"in_stock": lambda p: p.in_stock}),
        search_fields=("name", "tags"),
        **kwargs,
    )


def test_refresh_loads_records_and_counters(gateway):
    view = _view(gateway, sort=SortSpec(field="name"))

    assert view.refresh() is True

    assert view.loaded
    assert [p.name for p in view.records] == ["Almonds", "Cold Brew", "Mango", "trail mix"]
    assert view.counters["in_stock"] == 3
    assert view.counters.total == 4


def test_refresh_asks_gateway_to_sort_by_document_key(gateway):
    seen = []
    original = gateway.fetch_all

    def fetch_all(collection, sort=None):
        seen.append(sort)
        return original(collection, sort)

    gateway.fetch_all = fetch_all
    _view(gateway, sort=SortSpec(field="created_at", direction="desc")).refresh()

    assert seen == [SortSpec(field="createdAt", direction="desc")]


def test_projector_runs_over_every_record(gateway):
    view = _view(gateway, projector=lambda p: p.model_copy(update={"name": p.name.upper()}))

    view.refresh()

    assert {p.name for p in view.records} == {"ALMONDS", "MANGO", "COLD BREW", "TRAIL MIX"}


def test_failed_refresh_keeps_previous_records(gateway):
    view = _view(gateway)
    view.refresh()
    before = list(view.records)

    gateway.fail_fetch = True
    with pytest.raises(GatewayError):
        view.refresh()

    assert view.records == before
    assert not view.busy


def test_stale_response_is_discarded(gateway):
    view = _view(gateway)
    original = gateway.fetch_all
    entered = threading.Event()
    release = threading.Event()
    calls = []

    def fetch_all(collection, sort=None):
        calls.append(collection)
        if len(calls) == 1:
            # first fetch sees the old catalog and finishes last
            docs = original(collection, sort)
            entered.set()
            release.wait(timeout=5)
            return docs
        return original(collection, sort)

    gateway.fetch_all = fetch_all
    outcome = {}
    slow = threading.Thread(target=lambda: outcome.setdefault("slow", view.refresh()))
    slow.start()
    assert entered.wait(timeout=5)

    gateway.collections["products"]["p1"]["name"] = "Roasted Almonds"
    assert view.refresh() is True
    release.set()
    slow.join(timeout=5)

    assert outcome["slow"] is False
    assert "Roasted Almonds" in [p.name for p in view.records]


def test_mutation_blocked_while_refresh_in_flight(gateway):
    view = _view(gateway)
    view.refresh()

    with view.state.loading_scope():
        assert view.busy
        with pytest.raises(ScreenBusyError):
            view.mutations.apply("p1", {"in_stock": False})


def test_visible_applies_filters_and_sort(gateway):
    view = _view(gateway, sort=SortSpec(field="price"))
    view.refresh()

    view.set_filters(search="a")
    assert [p.id for p in view.visible()] == ["p4", "p1", "p2"]

    view.set_filters(equals={"category": "Nuts"})
    assert [p.id for p in view.visible()] == ["p1"]

    view.clear_filters()
    assert len(view.visible()) == 4


def test_toggle_sort_flips_then_resets():
    view = _view(None)

    assert view.toggle_sort("price") == SortSpec(field="price", direction="asc")
    assert view.toggle_sort("price") == SortSpec(field="price", direction="desc")
    assert view.toggle_sort("name") == SortSpec(field="name", direction="asc")


def test_visible_date_bucket_uses_given_now(gateway):
    view = _view(gateway)
    view.refresh()

    view.set_filters(date_bucket="month")
    assert len(view.visible(now=datetime(2024, 5, 20))) == 4
    assert view.visible(now=datetime(2024, 6, 2)) == []


def test_malformed_documents_are_skipped(make_gateway):
    gateway = make_gateway(products=[
        {"id": "p1", "name": "Dates", "price": 4, "inStock": True},
        {"id": "p2", "name": "No price"},
        {"id": "p3", "name": "Figs", "price": "not a number", "inStock": True},
        {"id": "p4", "name": "Kiwi", "price": 2, "inStock": False},
    ])
    view = _view(gateway)

    assert view.refresh() is True

    assert [p.id for p in view.records] == ["p1", "p4"]
    assert view.rejected == ["p2", "p3"]
    assert view.counters.total == 2
    assert view.counters["in_stock"] == 1


def test_rejected_list_resets_on_clean_refresh(make_gateway):
    gateway = make_gateway(products=[{"id": "p1", "name": "No price"}])
    view = _view(gateway)
    view.refresh()
    assert view.rejected == ["p1"]

    gateway.collections["products"]["p1"]["price"] = 3
    view.refresh()
    assert view.rejected == []
    assert [p.id for p in view.records] == ["p1"]
