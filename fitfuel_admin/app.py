import streamlit as st

# Configuration
from fitfuel_admin.config import get_config
from fitfuel_admin.logger import get_logger
from fitfuel_admin.ui import notifications_page, orders_page, product_form_page, products_page

PAGES = {
    "Orders": orders_page.render,
    "Products": products_page.render,
    "Add / Edit Product": product_form_page.render,
    "Notifications": notifications_page.render,
}


def main() -> None:
    st.set_page_config(page_title="FitFuel Admin", layout="wide")
    config = get_config()
    logger = get_logger(__name__)

    # -----------------------------------------------------------------------------
    # Navigation
    # -----------------------------------------------------------------------------
    st.sidebar.header("FitFuel Admin")
    page = st.sidebar.radio("Page", list(PAGES))
    logger.debug(f"Rendering page '{page}'")
    PAGES[page]()

    # -----------------------------------------------------------------------------
    # Footer
    # -----------------------------------------------------------------------------
    with st.sidebar.expander("Data source"):
        st.write(
            f"Documents are read through the **Gateway** interface ({config.gateway_kind}-backed) "
            f"from `{config.data_dir}/`; notifications go to `{config.notification_api_url}`."
        )
