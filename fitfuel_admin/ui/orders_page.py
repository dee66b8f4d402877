from __future__ import annotations

import pandas as pd
import streamlit as st

from fitfuel_admin.data.models import ALL, OrderView
from fitfuel_admin.services.formatting import format_currency, format_datetime
from fitfuel_admin.services.orders import (
    DATE_OPTIONS,
    STATUS_LABELS,
    STATUS_OPTIONS,
    line_total,
    payment_label,
    status_color,
    status_description,
    status_label,
    update_order_status,
)

from .session import ensure_loaded, order_view, reference_cache, run_action


def _order_details(view, order: OrderView) -> None:
    c1, c2, c3 = st.columns(3)
    with c1:
        st.markdown("**Customer Information**")
        st.write(order.customer_name)
        st.write(order.customer_phone)
        st.write(order.customer_address)
    with c2:
        st.markdown("**Payment Information**")
        st.write(f"Method: {order.payment_method or '-'}")
        st.write(f"Status: {payment_label(order)}")
        st.write(f"Total: {format_currency(order.total_amount)}")
    with c3:
        st.markdown("**Delivery Information**")
        st.markdown(
            f"<span style='color:{status_color(order.delivery_status)}'>&#9679;</span> "
            f"{status_label(order.delivery_status)}: {status_description(order.delivery_status)}",
            unsafe_allow_html=True,
        )
        st.write(f"Ordered: {format_datetime(order.created_at)}")

    st.markdown("**Items**")
    for item in order.items:
        st.write(f"{item.name} x {item.quantity or 1}: {format_currency(line_total(item))}")
    st.write(f"Subtotal: {format_currency(order.subtotal)} | Delivery fee: {format_currency(order.delivery_fee)}")

    values = [v for v, _ in STATUS_OPTIONS]
    new_status = st.selectbox(
        "Update status",
        values,
        index=values.index(order.delivery_status) if order.delivery_status in values else 0,
        format_func=STATUS_LABELS.get,
        key=f"status-{order.id}",
    )
    if st.button("Save status", key=f"save-status-{order.id}", disabled=new_status == order.delivery_status):
        if run_action(lambda: update_order_status(view, order.id, new_status), success="Order status updated"):
            st.rerun()


def render() -> None:
    view = order_view()

    head, actions = st.columns([3, 2])
    head.title("Order Dashboard")
    head.caption("Manage and track all customer orders")
    refresh = actions.button("Refresh")
    if actions.button("Reload customer profiles"):
        reference_cache().clear()
        refresh = True
    ensure_loaded(view, "orders", force=refresh)

    # Dashboard stats over every loaded order
    cols = st.columns(len(STATUS_OPTIONS) + 1)
    for col, (value, label) in zip(cols, STATUS_OPTIONS):
        col.metric(label, view.counters[value])
    cols[-1].metric("Total Orders", view.counters.total)

    # Controls
    c1, c2, c3, c4 = st.columns([3, 2, 2, 1])
    search = c1.text_input("Search", placeholder="Search by customer, order ID, phone...", key="order-search")
    status = c2.selectbox(
        "Status",
        [ALL] + [v for v, _ in STATUS_OPTIONS],
        format_func=lambda v: "All Statuses" if v == ALL else STATUS_LABELS[v],
        key="order-status",
    )
    date_values = [v for v, _ in DATE_OPTIONS]
    date_bucket = c3.selectbox("Date", date_values, format_func=dict(DATE_OPTIONS).get, key="order-date")
    view_mode = c4.radio("View", ["Grid", "List"], key="order-view-mode")

    view.set_filters(search=search, equals={"delivery_status": status}, date_bucket=date_bucket)
    orders = view.visible()

    if not orders:
        st.info("No orders found" + (" matching your filters." if view.filters.is_active else "."))
        return

    if view_mode == "List":
        st.dataframe(
            pd.DataFrame([
                {
                    "Order": o.id,
                    "Date": format_datetime(o.created_at),
                    "Customer": o.customer_name,
                    "Phone": o.customer_phone,
                    "Items": len(o.items),
                    "Total": format_currency(o.total_amount),
                    "Status": status_label(o.delivery_status),
                }
                for o in orders
            ]),
            use_container_width=True,
            hide_index=True,
        )
        return

    for order in orders:
        title = (
            f"#{order.id} · {order.customer_name} · {status_label(order.delivery_status)} · "
            f"{len(order.items)} items · {format_currency(order.total_amount)} · {format_datetime(order.created_at)}"
        )
        with st.expander(title):
            _order_details(view, order)
