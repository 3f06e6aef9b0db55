"""Balkan On Demand: Stremio addon for a curated Balkan catalog."""

__version__ = "0.1.0"
