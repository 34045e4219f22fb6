"""
Streamlit app entrypoint - navigation and logging setup.

This module configures logging from the app configuration, reports
configuration problems once per process, and builds the page navigation:
- Discover: distance-ranked provider listing with live sync
- Location: detect or pick the browsing location
- Admin Review: approve or reject provider submissions
"""

from __future__ import annotations

import logging
from pathlib import Path

import streamlit as st

st.set_page_config(page_title="BrightRoots Directory", page_icon="🌱", layout="wide")

from src.utils.config import get_app_config, validate_configuration  # noqa: E402 - must import after set_page_config

logger = logging.getLogger(__name__)

__all__ = ["configure_logging", "show_configuration_warnings"]


def configure_logging() -> None:
    """Apply the configured log level to the root logger."""
    level_name = str(get_app_config()["log_level"]).upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    logging.getLogger().setLevel(level)


@st.cache_resource
def show_configuration_warnings() -> dict:
    """Log configuration issues once per server process."""
    issues = validate_configuration()
    for section, message in issues.items():
        logger.warning(f"Configuration issue in [{section}]: {message}")
    return issues


_current_file = Path(__file__).name
_nav_items = [
    ("pages/1_🔎_Discover.py", "Discover", "🔎"),
    ("pages/2_📍_Location.py", "Location", "📍"),
    ("pages/30_🛠️_Admin_Review.py", "Admin Review", "🛠️"),
]


def _build_and_run_app():
    """Build navigation and run the selected page.

    Kept inside a function so pages importing this module do not render it twice.
    """
    configure_logging()
    show_configuration_warnings()

    nav_pages = [st.Page(path, title=title, icon=icon) for path, title, icon in _nav_items if path != _current_file]
    pg = st.navigation(nav_pages)
    pg.run()


if __name__ == "__main__":
    _build_and_run_app()
