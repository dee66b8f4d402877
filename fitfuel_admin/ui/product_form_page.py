from __future__ import annotations

from typing import Optional

import streamlit as st

from fitfuel_admin.data.models import CATEGORIES, NUTRITION_UNITS, NutritionFact
from fitfuel_admin.services.formatting import format_currency
from fitfuel_admin.services.products import (
    ProductDraft,
    add_tag,
    delete_product,
    delete_products,
    remove_tag,
    save_product,
)

from .session import ensure_loaded, gateway, product_view, remember, run_action, show_bulk_result

DRAFT_KEY = "product-draft"
EDIT_KEY = "product-edit-id"


def _draft() -> ProductDraft:
    if DRAFT_KEY not in st.session_state:
        remember(DRAFT_KEY, ProductDraft())
    return st.session_state[DRAFT_KEY]


def _reset_form() -> None:
    remember(DRAFT_KEY, ProductDraft())
    remember(EDIT_KEY, None)


def _tags_editor(draft: ProductDraft) -> None:
    c1, c2 = st.columns([4, 1])
    new_tag = c1.text_input("Add tag", key="new-tag")
    if c2.button("Add", key="add-tag"):
        draft.tags = add_tag(draft.tags, new_tag)
    for tag in list(draft.tags):
        if st.button(f"✕ {tag}", key=f"tag-{tag}"):
            draft.tags = remove_tag(draft.tags, tag)
            st.rerun()


def _nutrition_editor(draft: ProductDraft) -> None:
    for i, fact in enumerate(list(draft.nutrition_facts)):
        c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
        fact.name = c1.text_input("Nutrient", value=fact.name, key=f"nf-name-{i}")
        fact.value = c2.text_input("Value", value=fact.value, key=f"nf-value-{i}")
        unit_index = NUTRITION_UNITS.index(fact.unit) if fact.unit in NUTRITION_UNITS else 0
        fact.unit = c3.selectbox("Unit", NUTRITION_UNITS, index=unit_index, key=f"nf-unit-{i}")
        if c4.button("✕", key=f"nf-remove-{i}"):
            draft.nutrition_facts.pop(i)
            st.rerun()
    if st.button("Add nutrition fact"):
        draft.nutrition_facts.append(NutritionFact(name="", value="", unit="g"))
        st.rerun()


def _product_form(view) -> None:
    draft = _draft()
    editing: Optional[str] = st.session_state.get(EDIT_KEY)
    st.title("Edit Product" if editing else "Add New Product")
    st.caption(f"Editing product: {draft.name}" if editing else "Add products to your FitFuel app inventory")

    draft.name = st.text_input("Product name", value=draft.name)
    c1, c2 = st.columns(2)
    draft.price = c1.text_input("Price", value=draft.price)
    draft.discount_price = c2.text_input("Discount price", value=draft.discount_price)
    c3, c4 = st.columns(2)
    draft.weight = c3.text_input("Weight / quantity", value=draft.weight)
    draft.delivery_time = c4.text_input("Delivery time", value=draft.delivery_time)
    # a stored category outside the fixed set must be re-chosen before saving
    category_index = CATEGORIES.index(draft.category) if draft.category in CATEGORIES else 0
    draft.category = st.selectbox("Category", CATEGORIES, index=category_index)
    draft.description = st.text_area("Description", value=draft.description)
    _tags_editor(draft)

    f1, f2, f3 = st.columns(3)
    draft.in_stock = f1.checkbox("In stock", value=draft.in_stock)
    draft.is_popular = f2.checkbox("Popular", value=draft.is_popular)
    draft.is_featured = f3.checkbox("Featured", value=draft.is_featured)

    with st.expander("Nutrition facts"):
        _nutrition_editor(draft)

    upload = st.file_uploader("Product image", type=["png", "jpg", "jpeg", "webp"])
    if upload is not None:
        st.image(upload, width=160)
    elif draft.image:
        st.image(draft.image, width=160)

    s1, s2 = st.columns(2)
    if s1.button("Update product" if editing else "Add product", type="primary"):
        image = (upload.getvalue(), upload.name) if upload is not None else None
        with st.spinner("Uploading product..."):
            saved = run_action(
                lambda: save_product(view, gateway(), draft, image=image, product_id=editing),
                success="Product updated successfully" if editing else "Product added successfully",
            )
        if saved is not None:
            _reset_form()
    if editing and s2.button("Cancel edit"):
        _reset_form()
        st.rerun()


def _product_list(view) -> None:
    st.subheader("Products")
    products = view.visible()
    selected = []
    for product in products:
        c1, c2, c3, c4 = st.columns([1, 5, 1, 1])
        if c1.checkbox("select", key=f"form-select-{product.id}", label_visibility="collapsed"):
            selected.append(product.id)
        c2.write(f"{product.name} · {product.category} · {format_currency(product.price)}")
        if c3.button("Edit", key=f"form-edit-{product.id}"):
            remember(DRAFT_KEY, ProductDraft.from_product(product))
            remember(EDIT_KEY, product.id)
            st.rerun()
        if c4.button("Delete", key=f"form-delete-{product.id}"):
            if run_action(lambda: delete_product(view, product.id), success="Product deleted") is None:
                continue
            if st.session_state.get(EDIT_KEY) == product.id:
                _reset_form()
            st.rerun()

    if selected and st.button(f"Delete {len(selected)} selected products"):
        result = run_action(lambda: delete_products(view, selected))
        show_bulk_result(result, "Deleted")
        if result is not None and st.session_state.get(EDIT_KEY) in result.succeeded:
            _reset_form()


def render() -> None:
    view = product_view()
    ensure_loaded(view, "products")
    _product_form(view)
    st.divider()
    _product_list(view)
