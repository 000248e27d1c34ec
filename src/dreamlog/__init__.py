"""Dreamlog - offline-first dream journal storage and sync."""

__version__ = "0.1.0"
