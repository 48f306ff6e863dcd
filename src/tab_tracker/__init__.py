"""Browser tab time tracker: session tracking, local totals and an analytics API."""

__version__ = "0.3.0"
