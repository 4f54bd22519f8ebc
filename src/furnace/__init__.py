"""Structural summaries of Cargo projects."""

__version__ = "0.1.0"
