"""Discover Cargo packages (units) under a project root."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path

from furnace.errors import DiscoveryError
from furnace.filters import PathFilter

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"


@dataclass(frozen=True)
class UnitManifest:
    """A package manifest resolved to the unit it declares."""

    name: str
    root: Path
    version: str = "0.0.0"
    dependencies: tuple[str, ...] = ()


@dataclass(frozen=True)
class Discovery:
    """Result of manifest discovery: the project name and its units."""

    project_name: str
    units: list[UnitManifest]


def discover_units(
    project_dir: Path,
    path_filter: PathFilter | None = None,
    *,
    name: str | None = None,
) -> Discovery:
    """Find every Cargo package under *project_dir*.

    Raises :class:`DiscoveryError` when no ``Cargo.toml`` exists anywhere
    below the root.  Manifests that cannot be read are logged and skipped.
    """
    project_dir = project_dir.resolve()
    path_filter = path_filter or PathFilter()

    manifest_paths = _find_manifests(project_dir, path_filter)
    if not manifest_paths:
        raise DiscoveryError(f"No {MANIFEST_NAME} found under {project_dir}")

    manifests: dict[Path, dict] = {}
    for path in manifest_paths:
        data = _load_manifest(path)
        if data is not None:
            manifests[path.parent] = data

    root_data = manifests.get(project_dir, {})
    workspace = root_data.get("workspace")
    workspace_version = (
        workspace.get("package", {}).get("version")
        if isinstance(workspace, dict)
        else None
    )

    if isinstance(workspace, dict):
        member_dirs = _expand_members(project_dir, workspace)
        if "package" in root_data:
            member_dirs.add(project_dir)
        candidates = [d for d in manifests if d in member_dirs]
        missing = sorted(d for d in member_dirs if d not in manifests)
        for d in missing:
            logger.warning("Workspace member %s has no readable manifest", d)
    else:
        candidates = list(manifests)

    units: list[UnitManifest] = []
    for unit_dir in sorted(candidates):
        package = manifests[unit_dir].get("package")
        if not isinstance(package, dict) or not package.get("name"):
            continue
        units.append(
            UnitManifest(
                name=package["name"],
                root=unit_dir,
                version=_resolve_version(package.get("version"), workspace_version),
                dependencies=_direct_dependencies(manifests[unit_dir]),
            )
        )

    project_name = name or _project_name(project_dir, root_data)
    logger.debug(
        "Discovered %d manifests, %d units for '%s'",
        len(manifest_paths),
        len(units),
        project_name,
    )
    return Discovery(project_name=project_name, units=units)


def _find_manifests(project_dir: Path, path_filter: PathFilter) -> list[Path]:
    found: list[Path] = []
    for current, filenames in path_filter.walk(project_dir):
        if MANIFEST_NAME in filenames:
            found.append(current / MANIFEST_NAME)
    return sorted(found)


def _load_manifest(path: Path) -> dict | None:
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Skipping unreadable manifest %s: %s", path, e)
        return None


def _expand_members(project_dir: Path, workspace: dict) -> set[Path]:
    """Expand ``[workspace] members`` globs, minus ``exclude``."""
    members: set[Path] = set()
    for pattern in workspace.get("members", []):
        if any(token in pattern for token in ("*", "?", "[")):
            members.update(p.resolve() for p in project_dir.glob(pattern) if p.is_dir())
        else:
            members.add((project_dir / pattern).resolve())

    for pattern in workspace.get("exclude", []):
        excluded = {p.resolve() for p in project_dir.glob(pattern)}
        excluded.add((project_dir / pattern).resolve())
        members -= excluded
    return members


def _resolve_version(version, workspace_version: str | None) -> str:
    # version.workspace = true inherits from [workspace.package]
    if isinstance(version, dict):
        if version.get("workspace") and workspace_version:
            return str(workspace_version)
        return "0.0.0"
    if version:
        return str(version)
    return "0.0.0"


def _direct_dependencies(data: dict) -> tuple[str, ...]:
    deps = data.get("dependencies", {})
    if not isinstance(deps, dict):
        return ()
    return tuple(sorted(deps))


def _project_name(project_dir: Path, root_data: dict) -> str:
    """Guess the project display name from the root package or directory name."""
    package = root_data.get("package")
    if isinstance(package, dict) and package.get("name"):
        return package["name"]
    return project_dir.name
