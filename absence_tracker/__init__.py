"""Absence Tracker — employee absence and work-hours API."""

__version__ = "1.0.0"
