"""Tasky Focus: focus session engine with lock mode and priority keyboard shortcuts."""

__version__ = "0.1.0"
