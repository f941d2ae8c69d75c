"""Middleware components for the Contest Hub content API."""

from .logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
