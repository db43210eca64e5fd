"""Capture contacts from business cards and voice notes into a Google Sheet."""

__version__ = "0.1.0"
