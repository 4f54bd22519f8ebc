"""Extractor protocol: every declaration extractor conforms to this interface."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from furnace.model import AnyDeclaration


class DeclarationExtractor(Protocol):
    """Protocol for per-file declaration extractors."""

    def extract(self, text: str, path: str) -> list[AnyDeclaration]:
        """Return the declarations found in *text*.

        *path* is the project-relative POSIX path recorded in each
        declaration's location.  Raise
        :class:`~furnace.errors.ExtractionError` when the file cannot be
        analysed at all.
        """
        ...

    def namespace_path(self, source: Path, unit_root: Path) -> tuple[str, ...]:
        """Return the namespace segments that *source* contributes to."""
        ...
