from __future__ import annotations

import streamlit as st

from stockbook.config import get_settings
from stockbook.db import get_store
from stockbook.migrations import current_version
from stockbook.schema import MIGRATIONS
from stockbook.services.products import list_products

st.title("📦 Stockbook")
st.caption("Products, size/color variants and stock movements, kept in a local database file.")

settings = get_settings()
store = get_store(settings.db_path, settings.busy_timeout_ms)

with st.sidebar:
    st.subheader("Environment")
    st.write(f"**Data directory:** `{settings.data_dir}`")
    st.write(f"**Database:** `{settings.db_path.name}`")
    st.write(f"**Schema version:** {current_version(store)}/{len(MIGRATIONS)}")

products = list_products(store)
c1, c2 = st.columns(2)
c1.metric("Products", f"{len(products)}")
c2.metric("Units on hand", f"{sum(int(p['qty']) for p in products)}")

st.info(
    "Use the left sidebar navigation. Start with **➕ Add Product**, then record sales and deliveries in **🔁 Stock In/Out**. "
    "**🧪 Data Management** can load a demo catalog.",
    icon="ℹ️",
)
