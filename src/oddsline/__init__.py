"""Cached sports-betting odds with bounded-staleness reads."""

__version__ = "0.1.0"
