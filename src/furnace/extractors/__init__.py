"""Declaration extractors."""

from furnace.extractors.base import DeclarationExtractor

__all__ = ["DeclarationExtractor"]
