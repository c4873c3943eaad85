"""Reconciliation jobs that keep Wekan cards in sync with GitHub and token usage."""

__version__ = "0.3.0"
