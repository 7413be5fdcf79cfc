"""
Main Application File for the Seating Map Editor.
Lays out banquet tables, zones and labels on a cell grid and exports the
result as a web_v2 seating map document or an Excel table roster.
"""
import logging

import streamlit as st

from seating.state import SessionStore
from seating.utils import load_css
from seating.views.editor import EditorView

# ==============================================================================
# --- STREAMLIT APP MAIN LOGIC ---
# ==============================================================================

def main() -> None:
    """
    Main function to configure and run the Streamlit application.
    """
    # --- App Configuration ---
    st.set_page_config(layout="wide", page_title="Seating Map Editor")
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    # --- Apply Custom CSS ---
    load_css("assets/styles.css")

    # --- Initialize Session State ---
    store = SessionStore()
    view = EditorView(store)

    view.render_sidebar()
    view.render_main()

if __name__ == '__main__':
    main()
