"""Build a frozen ProjectGraph from a Cargo project on disk."""

from __future__ import annotations

import hashlib
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from furnace.errors import ExtractionError, IoError
from furnace.extractors.base import DeclarationExtractor
from furnace.extractors.rust import RustDeclarationExtractor
from furnace.extractors.rust.module_hierarchy import directory_to_module_path
from furnace.filters import PathFilter
from furnace.manifest import UnitManifest, discover_units
from furnace.model import AnyDeclaration, Namespace, ProjectGraph, Unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _SourceFile:
    index: int  # global discovery index
    path: Path
    rel: str  # project-relative POSIX path
    namespace: tuple[str, ...]


@dataclass
class _Outcome:
    declarations: list[AnyDeclaration] = field(default_factory=list)
    digest: str | None = None
    error: str | None = None


@dataclass
class _UnitPlan:
    manifest: UnitManifest
    files: list[_SourceFile] = field(default_factory=list)
    dir_errors: list[tuple[tuple[str, ...], str]] = field(default_factory=list)


@dataclass
class _ScratchNamespace:
    name: str
    qualified_name: str
    parent: int | None
    source_file: str | None = None
    digest: str | None = None
    children: list[int] = field(default_factory=list)
    declarations: list[tuple[int, AnyDeclaration]] = field(default_factory=list)
    unparsed: str | None = None

    def record_error(self, message: str) -> None:
        self.unparsed = message if self.unparsed is None else f"{self.unparsed}; {message}"


class GraphBuilder:
    """Walk a project, extract every eligible source file, and freeze the graph.

    Per-file failures never abort a build: an unreadable file or directory
    (:class:`IoError`) and a file the extractor rejects
    (:class:`ExtractionError`) are both recorded as an ``unparsed`` namespace
    carrying the error text, and logged.  Only a missing manifest
    (:class:`~furnace.errors.DiscoveryError`) is fatal.
    """

    def __init__(
        self,
        extractor: DeclarationExtractor | None = None,
        path_filter: PathFilter | None = None,
        *,
        workers: int | None = None,
    ):
        self.extractor = extractor or RustDeclarationExtractor()
        self.path_filter = path_filter or PathFilter()
        self.workers = workers

    def build(self, project_root: Path, *, name: str | None = None) -> ProjectGraph:
        root = project_root.resolve()
        discovery = discover_units(root, self.path_filter, name=name)

        unit_roots = [m.root for m in discovery.units]
        plans: list[_UnitPlan] = []
        jobs: list[_SourceFile] = []
        for manifest in discovery.units:
            plan = _UnitPlan(manifest=manifest)
            nested = [r for r in unit_roots if manifest.root in r.parents]
            unit_filter = self.path_filter.with_skip_roots(nested)

            def on_error(err: OSError, plan: _UnitPlan = plan) -> None:
                failed = Path(err.filename) if err.filename else plan.manifest.root
                message = str(IoError(f"unreadable: {err.strerror or err}"))
                logger.warning("%s: %s", failed, message)
                plan.dir_errors.append(
                    (directory_to_module_path(failed, plan.manifest.root), message)
                )

            for source in unit_filter.iter_sources(manifest.root, on_error):
                job = _SourceFile(
                    index=len(jobs),
                    path=source,
                    rel=source.relative_to(root).as_posix(),
                    namespace=self.extractor.namespace_path(source, manifest.root),
                )
                jobs.append(job)
                plan.files.append(job)
            plans.append(plan)

        outcomes = self._extract_all(jobs)
        units = tuple(_assemble_unit(plan, outcomes, root) for plan in plans)

        failures = sum(1 for o in outcomes if o.error is not None)
        logger.debug(
            "Graph '%s': %d units, %d files, %d unparsed",
            discovery.project_name,
            len(units),
            len(jobs),
            failures,
        )
        return ProjectGraph(
            name=discovery.project_name,
            root=root.as_posix(),
            units=units,
            empty=not units,
        )

    def _extract_all(self, jobs: list[_SourceFile]) -> list[_Outcome]:
        """Extract every job; results are placed by discovery index, not arrival order."""
        results: list[_Outcome | None] = [None] * len(jobs)
        if self.workers == 1 or len(jobs) < 2:
            for job in jobs:
                index, outcome = self._extract_one(job)
                results[index] = outcome
        else:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                futures = [executor.submit(self._extract_one, job) for job in jobs]
                for future in as_completed(futures):
                    index, outcome = future.result()
                    results[index] = outcome
        return results  # type: ignore[return-value]

    def _extract_one(self, job: _SourceFile) -> tuple[int, _Outcome]:
        try:
            raw = job.path.read_bytes()
        except OSError as e:
            error = IoError(f"unreadable: {e.strerror or e}")
            logger.warning("%s: %s", job.rel, error)
            return job.index, _Outcome(error=str(error))

        digest = hashlib.sha256(raw).hexdigest()
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            error = ExtractionError(f"not valid UTF-8 at byte {e.start}")
            logger.warning("%s: %s", job.rel, error)
            return job.index, _Outcome(digest=digest, error=str(error))

        try:
            declarations = self.extractor.extract(text, job.rel)
        except ExtractionError as e:
            logger.warning("%s: %s", job.rel, e)
            return job.index, _Outcome(digest=digest, error=str(e))
        return job.index, _Outcome(declarations=list(declarations), digest=digest)


def _assemble_unit(plan: _UnitPlan, outcomes: list[_Outcome], root: Path) -> Unit:
    """Merge per-file results into one namespace arena and freeze it."""
    scratch: list[_ScratchNamespace] = []
    by_path: dict[tuple[str, ...], int] = {}
    roots: list[int] = []

    def ensure(path: tuple[str, ...]) -> int:
        if path in by_path:
            return by_path[path]
        parent = ensure(path[:-1]) if len(path) > 1 else None
        index = len(scratch)
        scratch.append(
            _ScratchNamespace(
                name=path[-1], qualified_name="::".join(path), parent=parent
            )
        )
        by_path[path] = index
        if parent is None:
            roots.append(index)
        else:
            scratch[parent].children.append(index)
        return index

    for job in plan.files:
        outcome = outcomes[job.index]
        ns = scratch[ensure(job.namespace)]
        if ns.source_file is None:
            ns.source_file = job.rel
            ns.digest = outcome.digest
        if outcome.error is not None:
            ns.record_error(outcome.error)
        ns.declarations.extend((job.index, decl) for decl in outcome.declarations)

    for namespace_path, message in plan.dir_errors:
        scratch[ensure(namespace_path)].record_error(message)

    namespaces = tuple(
        Namespace(
            name=ns.name,
            qualified_name=ns.qualified_name,
            source_file=ns.source_file,
            digest=ns.digest,
            parent=ns.parent,
            children=tuple(ns.children),
            declarations=tuple(
                decl
                for _, decl in sorted(
                    ns.declarations,
                    key=lambda item: (item[0], item[1].location.start_line, item[1].name),
                )
            ),
            unparsed=ns.unparsed,
        )
        for ns in scratch
    )

    manifest = plan.manifest
    return Unit(
        name=manifest.name,
        path=manifest.root.relative_to(root).as_posix(),
        version=manifest.version,
        dependencies=manifest.dependencies,
        namespaces=namespaces,
        roots=tuple(roots),
    )
