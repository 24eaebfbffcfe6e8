"""Deterministic rule-driven procedural generation over hex grids."""

__version__ = "0.1.0"
