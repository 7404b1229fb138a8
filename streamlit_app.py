"""
# ScanDPE Simulator

This is the main entry point for the Streamlit application.

Run with ``streamlit run streamlit_app.py``; it hands over to the main
application page, which holds the project list and the per-project tabs.

"""

import streamlit as st

# Redirect to the main application page.
# This is a workaround to use a multi-page app structure where the main app
# is not in the root script.
st.switch_page("app/main.py")
