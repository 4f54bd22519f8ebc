"""Map Rust source files to their module paths."""

from __future__ import annotations

from pathlib import Path

CRATE_ROOT = "crate"
SOURCE_DIR = "src"

# Files that own their parent module rather than creating a child one
_CRATE_ROOT_FILES = {"lib", "main"}
_MOD_FILE = "mod"


def source_file_to_module_path(rs_file: Path, unit_root: Path) -> tuple[str, ...]:
    """Convert a .rs file path to the module path segments it contributes to.

    ``src/lib.rs``             → ``("crate",)``
    ``src/main.rs``            → ``("crate",)``
    ``src/spatial/kd_tree.rs`` → ``("crate", "spatial", "kd_tree")``
    ``src/spatial/mod.rs``     → ``("crate", "spatial")``
    ``tests/common/mod.rs``    → ``("tests", "common")``
    ``build.rs``               → ``("build",)``

    Files outside ``src/`` keep their top-level directory as the first
    segment, since Cargo compiles them as separate targets.
    """
    rel = rs_file.relative_to(unit_root)
    parts = list(rel.with_suffix("").parts)

    if parts and parts[0] == SOURCE_DIR:
        parts = parts[1:]
        if parts == [] or (len(parts) == 1 and parts[0] in _CRATE_ROOT_FILES):
            return (CRATE_ROOT,)
        if parts[-1] == _MOD_FILE:
            parts = parts[:-1]
        return (CRATE_ROOT, *parts)

    if len(parts) > 1 and parts[-1] == _MOD_FILE:
        parts = parts[:-1]
    return tuple(parts)


def directory_to_module_path(directory: Path, unit_root: Path) -> tuple[str, ...]:
    """Module path for a directory, used when the directory itself is unreadable."""
    rel = directory.relative_to(unit_root)
    parts = list(rel.parts)
    if parts and parts[0] == SOURCE_DIR:
        return (CRATE_ROOT, *parts[1:])
    return tuple(parts) or (CRATE_ROOT,)
