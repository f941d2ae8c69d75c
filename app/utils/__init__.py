"""Utility functions for the Contest Hub content API."""

from .layout import select_featured, select_featured_count
from .sanitization import sanitize_for_log, strip_markup, summarize

__all__ = [
    "summarize",
    "strip_markup",
    "sanitize_for_log",
    "select_featured_count",
    "select_featured",
]
