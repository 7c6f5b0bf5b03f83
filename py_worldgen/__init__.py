"""Procedural terrain for turn-based strategy maps."""

__version__ = "0.1.0"
