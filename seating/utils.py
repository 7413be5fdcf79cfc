import re
from datetime import date
from typing import Optional

import streamlit as st

from seating.config import BACKGROUND_COLOR, SELECTION_COLOR, TEXT_COLOR


def load_css(file_path: str) -> None:
    """Loads a CSS file and injects it into the Streamlit app. A missing file is ignored."""
    try:
        with open(file_path) as f:
            css = f.read()
    except FileNotFoundError:
        return

    css_variables = f"""
    <style>
        :root {{
            --background-color: {BACKGROUND_COLOR};
            --text-color: {TEXT_COLOR};
            --accent-color: {SELECTION_COLOR};
        }}
        {css}
    </style>
    """
    st.markdown(css_variables, unsafe_allow_html=True)


def _sanitize(part: str) -> str:
    return re.sub(r'[^A-Za-z0-9\-]+', '_', part.strip()).strip('_')


def generate_standard_filename(prefix: str, event_name: Optional[str], extension: str,
                               on_date: Optional[date] = None) -> str:
    """
    Builds a download file name such as 'Seating_Report_Smith_Wedding_2024-06-01.xlsx'.
    Characters that are unsafe in file names are replaced with underscores.
    """
    parts = [prefix]
    event_part = _sanitize(event_name or "")
    if event_part:
        parts.append(event_part)
    if on_date is not None:
        parts.append(on_date.isoformat())
    return f"{'_'.join(parts)}.{extension}"
