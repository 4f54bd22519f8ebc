"""Path eligibility policy for project traversal."""

from __future__ import annotations

import fnmatch
import os
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Iterator, Sequence

DEFAULT_BUILD_DIRS = frozenset({"target"})
RUST_EXTENSIONS = (".rs",)


class Decision(Enum):
    INCLUDE = "include"
    EXCLUDE = "exclude"


class PathFilter:
    """Decide which directories and files under a unit root are traversed.

    Rules are checked in priority order: build-output directory, hidden
    segment, ``ignore`` pattern, nested unit root, and finally (files only)
    the source extension.  Every rule looks at *all* segments of the path
    relative to the unit root, so a path below an excluded directory is
    itself excluded even when asked about directly.
    """

    def __init__(
        self,
        *,
        build_dirs: Iterable[str] = DEFAULT_BUILD_DIRS,
        extensions: Sequence[str] = RUST_EXTENSIONS,
        ignore: Sequence[str] = (),
        skip_roots: Iterable[Path] = (),
    ):
        self.build_dirs = frozenset(build_dirs)
        self.extensions = tuple(extensions)
        self.ignore = tuple(ignore)
        self.skip_roots = frozenset(Path(p).resolve() for p in skip_roots)

    def with_skip_roots(self, roots: Iterable[Path]) -> PathFilter:
        """Return a copy that additionally excludes everything under *roots*."""
        return PathFilter(
            build_dirs=self.build_dirs,
            extensions=self.extensions,
            ignore=self.ignore,
            skip_roots=set(self.skip_roots) | {Path(r).resolve() for r in roots},
        )

    def decide(
        self, path: Path, unit_root: Path, *, is_dir: bool | None = None
    ) -> Decision:
        try:
            rel = path.relative_to(unit_root)
        except ValueError:
            return Decision.EXCLUDE

        parts = rel.parts
        if any(part in self.build_dirs for part in parts):
            return Decision.EXCLUDE
        if any(part.startswith(".") for part in parts):
            return Decision.EXCLUDE
        if self.ignore and _matches_ignore(rel.as_posix(), parts, self.ignore):
            return Decision.EXCLUDE
        if self.skip_roots and parts:
            resolved = path.resolve()
            if any(
                resolved == skip or skip in resolved.parents
                for skip in self.skip_roots
            ):
                return Decision.EXCLUDE

        if is_dir is None:
            is_dir = path.is_dir()
        if not is_dir and path.suffix not in self.extensions:
            return Decision.EXCLUDE
        return Decision.INCLUDE

    def walk(
        self,
        root: Path,
        on_error: Callable[[OSError], None] | None = None,
    ) -> Iterator[tuple[Path, list[str]]]:
        """Yield ``(directory, sorted file names)`` for every eligible directory.

        Excluded directories are pruned before descent, so their contents are
        never listed.  File names are *not* filtered; callers apply
        :meth:`decide` or their own name test.
        """
        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            current = Path(dirpath)
            dirnames[:] = [
                d
                for d in sorted(dirnames)
                if self.decide(current / d, root, is_dir=True) is Decision.INCLUDE
            ]
            yield current, sorted(filenames)

    def iter_sources(
        self,
        root: Path,
        on_error: Callable[[OSError], None] | None = None,
    ) -> Iterator[Path]:
        """Yield eligible source files in deterministic traversal order.

        Within a directory, files come before sub-directories.
        """
        for current, filenames in self.walk(root, on_error):
            for name in filenames:
                path = current / name
                if self.decide(path, root, is_dir=False) is Decision.INCLUDE:
                    yield path


def _matches_ignore(rel_posix: str, parts: tuple[str, ...], patterns: Sequence[str]) -> bool:
    """Glob patterns match the relative path or any segment; plain strings match as substrings."""
    for pattern in patterns:
        if any(token in pattern for token in ("*", "?", "[")):
            if fnmatch.fnmatch(rel_posix, pattern) or any(
                fnmatch.fnmatch(part, pattern) for part in parts
            ):
                return True
            continue
        if pattern in rel_posix:
            return True
    return False
