"""Utility modules for the Contest Hub content API."""

from .logging import Timer, clear_request_context, set_request_context, setup_logging

__all__ = [
    "setup_logging",
    "set_request_context",
    "clear_request_context",
    "Timer",
]
