"""Per-browser-session objects and shared page helpers.

Gateway, reference cache, views and the notification client live in
``st.session_state`` so each dashboard session owns its own copy of all state.
"""
from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

import streamlit as st

from fitfuel_admin.config import get_config
from fitfuel_admin.core.mutations import BulkResult
from fitfuel_admin.core.reference_cache import ReferenceCache
from fitfuel_admin.core.views import CollectionView
from fitfuel_admin.data.util import get_gateway
from fitfuel_admin.errors import DashboardError, LocalValidationError
from fitfuel_admin.logger import get_logger
from fitfuel_admin.services.notifications import NotificationClient, StatusMessage
from fitfuel_admin.services.orders import build_order_view
from fitfuel_admin.services.products import build_product_view

logger = get_logger(__name__)

T = TypeVar("T")


def _session(key: str, factory: Callable[[], T]) -> T:
    if key not in st.session_state:
        st.session_state[key] = factory()
    return st.session_state[key]


def gateway():
    return _session("gateway", get_gateway)


def reference_cache() -> ReferenceCache:
    return _session("reference_cache", lambda: ReferenceCache(gateway()))


def order_view() -> CollectionView:
    return _session("order_view", lambda: build_order_view(gateway(), reference_cache()))


def product_view() -> CollectionView:
    return _session("product_view", lambda: build_product_view(gateway(), get_config().default_product_sort))


def notification_client() -> NotificationClient:
    return _session("notification_client", NotificationClient)


def run_action(action: Callable[[], T], success: Optional[str] = None) -> Optional[T]:
    """Run a page action, turning dashboard errors into banners."""
    try:
        result = action()
    except LocalValidationError as e:
        st.warning(str(e))
        return None
    except DashboardError as e:
        logger.error(f"Action failed: {e}")
        st.error(str(e))
        return None
    if success:
        st.success(success)
    return result


def ensure_loaded(view: CollectionView, label: str, force: bool = False) -> None:
    if view.loaded and not force:
        return
    with st.spinner(f"Loading {label}..."):
        run_action(view.refresh)
    if view.rejected:
        st.warning(f"{len(view.rejected)} {label} could not be read and are hidden: {', '.join(view.rejected)}")


def show_bulk_result(result: Optional[BulkResult], action: str) -> None:
    if result is None:
        return
    if result.failed:
        st.warning(result.summary(action))
    else:
        st.success(result.summary(action))


def show_status(message: Optional[StatusMessage]) -> None:
    if message is None:
        return
    {"info": st.info, "success": st.success, "warning": st.warning, "error": st.error}[message.kind](message.text)


def remember(key: str, value: Any) -> None:
    st.session_state[key] = value
