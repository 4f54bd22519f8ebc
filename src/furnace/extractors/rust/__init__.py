"""Rust extractors."""

from __future__ import annotations

from furnace.extractors.rust.ast_symbols import RustDeclarationExtractor
from furnace.extractors.rust.module_hierarchy import source_file_to_module_path

__all__ = [
    "RustDeclarationExtractor",
    "source_file_to_module_path",
]
