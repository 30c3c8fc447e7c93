"""Rent Scout - location-based rental search with weather and map clustering."""

__version__ = "0.1.0"
