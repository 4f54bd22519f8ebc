"""Frozen data model for project graphs."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Iterator, Union


class DeclKind(str, Enum):
    FUNCTION = "function"
    AGGREGATE = "aggregate"  # struct
    CONTRACT = "contract"  # trait
    VARIANT = "variant"  # enum


@dataclass(frozen=True)
class Location:
    """Where a declaration lives: project-relative POSIX path and 1-based line span."""

    file: str
    start_line: int
    end_line: int


@dataclass(frozen=True)
class MethodSignature:
    name: str
    arity: int  # parameters, not counting the self receiver


@dataclass(frozen=True)
class Variable:
    name: str
    type: str | None = None


@dataclass(frozen=True)
class Declaration:
    """Fields shared by every declaration kind."""

    kind: ClassVar[DeclKind]

    name: str
    location: Location
    visibility: str = "private"  # "public", "restricted", "private"

    @property
    def line_count(self) -> int:
        return self.location.end_line - self.location.start_line + 1

    @property
    def is_public(self) -> bool:
        return self.visibility == "public"


@dataclass(frozen=True)
class Function(Declaration):
    kind: ClassVar[DeclKind] = DeclKind.FUNCTION

    params: tuple[str, ...] = ()
    variables: tuple[Variable, ...] = ()

    @property
    def param_count(self) -> int:
        return len(self.params)


@dataclass(frozen=True)
class Aggregate(Declaration):
    kind: ClassVar[DeclKind] = DeclKind.AGGREGATE

    fields: tuple[str, ...] = ()
    methods: tuple[str, ...] = ()

    @property
    def field_count(self) -> int:
        return len(self.fields)


@dataclass(frozen=True)
class Contract(Declaration):
    kind: ClassVar[DeclKind] = DeclKind.CONTRACT

    methods: tuple[MethodSignature, ...] = ()


@dataclass(frozen=True)
class Variant(Declaration):
    kind: ClassVar[DeclKind] = DeclKind.VARIANT

    variants: tuple[str, ...] = ()
    methods: tuple[str, ...] = ()


AnyDeclaration = Union[Function, Aggregate, Contract, Variant]


@dataclass(frozen=True)
class Namespace:
    """A module in a unit's namespace arena.

    ``parent`` and ``children`` are indices into ``Unit.namespaces``.  A
    namespace without ``source_file`` is purely organizational.  When
    ``unparsed`` is set, it holds the message of the failure that kept the
    namespace's file from being analysed.
    """

    name: str
    qualified_name: str
    source_file: str | None = None
    digest: str | None = None
    parent: int | None = None
    children: tuple[int, ...] = ()
    declarations: tuple[AnyDeclaration, ...] = ()
    unparsed: str | None = None

    @property
    def is_unparsed(self) -> bool:
        return self.unparsed is not None


@dataclass(frozen=True)
class Unit:
    """One Cargo package."""

    name: str
    path: str  # relative to the project root, "." for the root itself
    version: str = "0.0.0"
    dependencies: tuple[str, ...] = ()
    namespaces: tuple[Namespace, ...] = ()
    roots: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for ns in self.namespaces:
            if ns.qualified_name in seen:
                raise ValueError(
                    f"Duplicate namespace '{ns.qualified_name}' in unit '{self.name}'"
                )
            seen.add(ns.qualified_name)
        self._check_arena()

    def _check_arena(self) -> None:
        """Every namespace must be reachable from ``roots`` exactly once.

        Indices must be in range and each child's ``parent`` must point back
        at the namespace listing it, which also rules out cycles.
        """
        count = len(self.namespaces)
        reached: set[int] = set()
        stack: list[int] = []
        for idx in self.roots:
            if not 0 <= idx < count:
                raise ValueError(f"Root index {idx} out of range in unit '{self.name}'")
            if self.namespaces[idx].parent is not None:
                raise ValueError(f"Root namespace {idx} has a parent in unit '{self.name}'")
            stack.append(idx)

        while stack:
            idx = stack.pop()
            if idx in reached:
                raise ValueError(f"Namespace {idx} is reached twice in unit '{self.name}'")
            reached.add(idx)
            for child in self.namespaces[idx].children:
                if not 0 <= child < count:
                    raise ValueError(
                        f"Child index {child} out of range in unit '{self.name}'"
                    )
                if self.namespaces[child].parent != idx:
                    raise ValueError(
                        f"Namespace {child} is listed under {idx} "
                        f"but its parent is {self.namespaces[child].parent}"
                    )
                stack.append(child)

        if len(reached) != count:
            raise ValueError(
                f"{count - len(reached)} namespace(s) unreachable from roots "
                f"in unit '{self.name}'"
            )

    def walk(self) -> Iterator[tuple[int, Namespace]]:
        """Yield ``(depth, namespace)`` in pre-order."""
        stack = [(0, idx) for idx in reversed(self.roots)]
        while stack:
            depth, idx = stack.pop()
            ns = self.namespaces[idx]
            yield depth, ns
            stack.extend((depth + 1, child) for child in reversed(ns.children))

    def find(self, qualified_name: str) -> Namespace | None:
        for ns in self.namespaces:
            if ns.qualified_name == qualified_name:
                return ns
        return None


@dataclass(frozen=True)
class ProjectGraph:
    """Complete project structure produced by the graph builder."""

    name: str
    root: str
    units: tuple[Unit, ...] = ()
    empty: bool = field(default=False)

    def __post_init__(self) -> None:
        if not self.units and not self.empty:
            raise ValueError("A project graph without units must be marked empty")
        paths = [u.path for u in self.units]
        if len(paths) != len(set(paths)):
            raise ValueError(f"Units share a root path: {paths}")

    def namespaces(self) -> Iterator[tuple[Unit, Namespace]]:
        for unit in self.units:
            for _, ns in unit.walk():
                yield unit, ns

    def declarations(self) -> Iterator[tuple[Unit, Namespace, AnyDeclaration]]:
        for unit, ns in self.namespaces():
            for decl in ns.declarations:
                yield unit, ns, decl
