"""Walkin: GPS-based attendance backend."""

__version__ = "1.0.0"
