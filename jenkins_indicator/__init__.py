"""Polling and aggregation core for a Jenkins CI status indicator."""

__version__ = "0.1.0"
