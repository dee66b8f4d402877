from __future__ import annotations

import pandas as pd
import streamlit as st

from fitfuel_admin.data.models import Product
from fitfuel_admin.services.formatting import format_currency
from fitfuel_admin.services.products import (
    ALL_CATEGORIES,
    SORT_FIELDS,
    bulk_set_in_stock,
    categories_of,
    quick_edit,
    set_category_filter,
    toggle_featured,
    toggle_in_stock,
)

from .session import ensure_loaded, product_view, run_action, show_bulk_result


def _quick_edit_form(view, product: Product) -> None:
    with st.form(key=f"quick-edit-{product.id}"):
        name = st.text_input("Name", value=product.name)
        c1, c2 = st.columns(2)
        price = c1.text_input("Price", value=str(product.price))
        discount = c2.text_input("Discount price", value=str(product.discount_price or ""))
        in_stock = st.checkbox("In stock", value=product.in_stock)
        featured = st.checkbox("Featured", value=product.is_featured)
        if st.form_submit_button("Save"):
            saved = run_action(
                lambda: quick_edit(view, product.id, name, price, discount, in_stock, featured),
                success="Product updated",
            )
            if saved is not None:
                st.rerun()


def _bulk_edit(view, products) -> None:
    frame = pd.DataFrame([
        {"select": False, "id": p.id, "name": p.name, "category": p.category, "in stock": p.in_stock}
        for p in products
    ])
    if st.checkbox("Select all visible", key="bulk-select-all"):
        frame["select"] = True
    edited = st.data_editor(
        frame,
        disabled=["id", "name", "category", "in stock"],
        hide_index=True,
        use_container_width=True,
        key="bulk-editor",
    )
    selected = edited.loc[edited["select"], "id"].tolist()
    st.caption(f"{len(selected)} selected")

    c1, c2 = st.columns(2)
    if c1.button("Mark available", disabled=not selected):
        show_bulk_result(run_action(lambda: bulk_set_in_stock(view, selected, True)), "Marked available")
    if c2.button("Mark unavailable", disabled=not selected):
        show_bulk_result(run_action(lambda: bulk_set_in_stock(view, selected, False)), "Marked unavailable")


def render() -> None:
    view = product_view()

    head, actions = st.columns([3, 2])
    head.title("Product Dashboard")
    refresh = actions.button("Refresh", key="products-refresh")
    bulk_mode = actions.toggle("Bulk edit", key="products-bulk")
    ensure_loaded(view, "products", force=refresh)

    c = view.counters
    s1, s2, s3, s4 = st.columns(4)
    s1.metric("Total Products", c.total)
    s2.metric("In Stock", c["in_stock"])
    s3.metric("Out of Stock", c["out_of_stock"])
    s4.metric("Featured", c["featured"])

    f1, f2, f3, f4 = st.columns([3, 2, 2, 1])
    search = f1.text_input("Search", placeholder="Search products...", key="products-search")
    category = f2.selectbox("Category", [ALL_CATEGORIES] + categories_of(view.records), key="products-category")
    sort_label = f3.selectbox("Sort by", list(SORT_FIELDS), key="products-sort")
    descending = f4.toggle("Desc", key="products-desc")

    view.set_filters(search=search)
    set_category_filter(view, category)
    wanted = SORT_FIELDS[sort_label]
    if view.sort is None or view.sort.field != wanted:
        view.toggle_sort(wanted)
    if (view.sort.direction == "desc") != descending:
        view.toggle_sort(wanted)

    products = view.visible()
    if not products:
        st.info("No products found.")
        return

    if bulk_mode:
        _bulk_edit(view, products)
        return

    for product in products:
        price = format_currency(product.price)
        if product.discount_price:
            price = f"{format_currency(product.discount_price)} (was {price})"
        flags = " · ".join(
            label for label, on in (("In stock", product.in_stock), ("Featured", product.is_featured)) if on
        ) or "Out of stock"
        with st.expander(f"{product.name} · {product.category} · {price} · {flags}"):
            if product.image:
                st.image(product.image, width=160)
            st.write(product.description or "")
            if product.tags:
                st.caption(", ".join(product.tags))
            b1, b2 = st.columns(2)
            if b1.button("Mark unavailable" if product.in_stock else "Mark available", key=f"stock-{product.id}"):
                if run_action(lambda: toggle_in_stock(view, product)) is not None:
                    st.rerun()
            if b2.button("Unfeature" if product.is_featured else "Feature", key=f"feature-{product.id}"):
                if run_action(lambda: toggle_featured(view, product)) is not None:
                    st.rerun()
            _quick_edit_form(view, product)
