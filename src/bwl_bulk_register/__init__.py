"""Bulk registration of users for a Blueworks Live account."""

__version__ = "0.1.0"
