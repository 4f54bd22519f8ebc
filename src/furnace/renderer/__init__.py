"""Text rendering of project graphs."""

from furnace.renderer.text import render

__all__ = ["render"]
