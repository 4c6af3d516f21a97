"""Filterable report definitions exported to CSV."""

__version__ = "0.1.0"
