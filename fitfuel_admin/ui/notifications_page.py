from __future__ import annotations

from typing import List

import pandas as pd
import streamlit as st

from fitfuel_admin.config import get_config
from fitfuel_admin.data.models import ALL, PushToken
from fitfuel_admin.services.analytics import chart_frame, is_winner, notification_open_rate
from fitfuel_admin.services.formatting import format_datetime, format_rate
from fitfuel_admin.services.notifications import (
    StatusMessage,
    TIMEFRAMES,
    filter_tokens,
    platforms_of,
    reminder_sent_message,
    send_notifications,
    send_result_message,
    tokens_loaded_message,
)

from .session import notification_client, remember, run_action, show_status

TOKENS_KEY = "push-tokens"
STATUS_KEY = "notification-status"
CLEAR_FORM_KEY = "notify-clear"
TIMEFRAME_LABELS = {"day": "Last 24 Hours", "week": "Last 7 Days", "month": "Last 30 Days"}


def _load_tokens() -> None:
    tokens = run_action(notification_client().fetch_tokens)
    if tokens is not None:
        remember(TOKENS_KEY, tokens)
        remember(STATUS_KEY, tokens_loaded_message(tokens))


def _tokens_section() -> List[PushToken]:
    st.subheader("Device Tokens")
    if TOKENS_KEY not in st.session_state or st.button("Refresh Tokens"):
        with st.spinner("Fetching device tokens..."):
            _load_tokens()
    tokens: List[PushToken] = st.session_state.get(TOKENS_KEY, [])

    c1, c2 = st.columns(2)
    platform = c1.selectbox("Platform", [ALL] + platforms_of(tokens), key="token-platform")
    search = c2.text_input("Filter by user or token", key="token-search")
    filtered = filter_tokens(tokens, platform=platform, search=search)

    m1, m2 = st.columns(2)
    m1.metric("Total Tokens", len(tokens))
    m2.metric("Target Devices", len(filtered))

    preview = get_config().token_preview_count
    with st.expander(f"Sample Tokens (First {preview})"):
        for item in tokens[:preview]:
            st.write(f"User: {item.user_id} · {item.platform}")
            st.code(item.token)
    return filtered


def _send_section(filtered: List[PushToken]) -> None:
    st.subheader("Send Notification")
    # widget values can only be reset before the widgets are drawn
    if st.session_state.pop(CLEAR_FORM_KEY, False):
        for key in ("notify-title", "notify-body", "notify-data"):
            st.session_state.pop(key, None)
    with st.form("send-notification", clear_on_submit=False):
        title = st.text_input("Title", key="notify-title")
        body = st.text_area("Body", key="notify-body")
        data_text = st.text_area("Data (JSON)", value="{}", key="notify-data")
        submitted = st.form_submit_button(
            f"Send to {len(filtered)} Devices", disabled=not filtered
        )
    if submitted:
        with st.spinner("Sending notifications..."):
            result = run_action(lambda: send_notifications(notification_client(), filtered, title, body, data_text))
        if result is not None:
            remember(STATUS_KEY, send_result_message(result))
            if result.sent > 0:
                remember(CLEAR_FORM_KEY, True)
                st.rerun()
            show_status(st.session_state[STATUS_KEY])


def _water_reminder_section() -> None:
    st.subheader("Water Reminders")
    client = notification_client()
    status = run_action(client.water_reminder_status)
    if status is not None:
        st.write("Active" if status.active else "Inactive")
        if status.next_reminder:
            st.caption(f"Next reminder: {format_datetime(status.next_reminder)}")

    c1, c2 = st.columns(2)
    if c1.button("Start water reminders"):
        started = run_action(client.start_water_reminders)
        if started is not None:
            when = format_datetime(started.next_reminder) if started.next_reminder else "not scheduled"
            remember(STATUS_KEY, StatusMessage(kind="success", text=f"Water reminders started successfully. Next reminder: {when}"))
            st.rerun()
    if c2.button("Send reminder now"):
        with st.spinner("Sending immediate water reminder..."):
            sent = run_action(client.send_water_reminder_now)
        if sent is not None:
            remember(STATUS_KEY, reminder_sent_message(sent))
            show_status(st.session_state[STATUS_KEY])


def _analytics_section() -> None:
    st.subheader("Analytics Dashboard")
    client = notification_client()
    timeframe = st.selectbox("Time Period", TIMEFRAMES, index=1, format_func=TIMEFRAME_LABELS.get)
    with st.spinner("Loading analytics data..."):
        analytics = run_action(lambda: client.fetch_analytics(timeframe))
    if analytics is None:
        return

    s = analytics.summary
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Sent", f"{s.total_sent:,}")
    c2.metric("Delivery Rate", format_rate(s.delivery_rate))
    c3.metric("Open Rate", format_rate(s.open_rate))
    c4.metric("Interaction Rate", format_rate(s.interaction_rate))

    if analytics.is_empty:
        st.info("No notification data available for this timeframe.")
    else:
        daily = chart_frame(analytics)
        st.line_chart(daily, x="label", y=["sent", "opened", "interactions"], use_container_width=True)
        st.markdown("#### Recent Notifications")
        st.dataframe(
            pd.DataFrame([
                {
                    "Title": n.title,
                    "Sent": format_datetime(n.sent_at),
                    "Delivered": n.sent_count,
                    "Opened": n.open_count,
                    "Open Rate": format_rate(notification_open_rate(n)),
                }
                for n in analytics.notifications
            ]),
            hide_index=True,
            use_container_width=True,
        )

    st.markdown("#### A/B Tests")
    campaigns = run_action(client.fetch_campaigns) or []
    options = [None] + [c.id for c in campaigns]
    names = {c.id: c.name or c.id for c in campaigns}
    campaign_id = st.selectbox(
        "Campaign", options, format_func=lambda cid: "Select a campaign" if cid is None else names[cid]
    )
    if campaign_id is None:
        return
    result = run_action(lambda: client.fetch_ab_test(campaign_id))
    if result is None:
        return
    if not result.variants:
        st.info("No variants recorded for this campaign.")
        return
    for col, variant in zip(st.columns(len(result.variants)), result.variants):
        with col:
            badge = " 🏆 Winner" if is_winner(variant, result) else ""
            st.markdown(f"**Variant {variant.variant}**{badge}")
            st.write(variant.title)
            st.caption(variant.body)
            st.write(f"Open Rate: {format_rate(variant.open_rate)}")
            st.write(f"Interaction Rate: {format_rate(variant.interaction_rate)}")


def render() -> None:
    st.title("Push Notifications")
    show_status(st.session_state.get(STATUS_KEY))
    filtered = _tokens_section()
    _send_section(filtered)
    st.divider()
    _water_reminder_section()
    st.divider()
    _analytics_section()
