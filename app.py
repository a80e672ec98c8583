from __future__ import annotations

import streamlit as st

from stockbook.config import get_settings
from stockbook.logging_setup import setup_logging

st.set_page_config(page_title="Stockbook", page_icon="📦", layout="wide")

setup_logging(get_settings())

pages = [
    st.Page("home.py", title="Home", icon="🏠"),
    st.Page("pages/1_📦_Stock.py", title="Stock", icon="📦"),
    st.Page("pages/2_🔁_Stock_In_Out.py", title="Stock In/Out", icon="🔁"),
    st.Page("pages/3_✏️_Edit_Product.py", title="Edit Product", icon="✏️"),
    st.Page("pages/4_➕_Add_Product.py", title="Add Product", icon="➕"),
    st.Page("pages/5_📊_Report.py", title="Report", icon="📊"),
    st.Page("pages/6_🧪_Data_Management.py", title="Data Management", icon="🧪"),
]

st.navigation(pages).run()
